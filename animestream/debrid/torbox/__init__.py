from .client import TorBoxProvider
from .exceptions import TorBoxError, TorBoxAPIError, TorBoxAuthError

__all__ = ['TorBoxProvider', 'TorBoxError', 'TorBoxAPIError', 'TorBoxAuthError']
