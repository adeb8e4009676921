from ..base import DebridProviderError

class TorBoxError(DebridProviderError):
    """Base exception class for TorBox specific errors"""
    pass

class TorBoxAPIError(TorBoxError):
    """Exception raised when the TorBox API returns an error"""
    pass

class TorBoxAuthError(TorBoxError):
    """Exception raised when there are authentication issues"""
    pass
