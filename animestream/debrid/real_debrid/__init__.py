from .client import RealDebridProvider
from .exceptions import RealDebridError, RealDebridAPIError, RealDebridAuthError

__all__ = ['RealDebridProvider', 'RealDebridError', 'RealDebridAPIError', 'RealDebridAuthError']
