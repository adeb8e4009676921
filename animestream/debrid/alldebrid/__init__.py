from .client import AllDebridProvider
from .exceptions import AllDebridError, AllDebridAPIError, AllDebridAuthError

__all__ = ['AllDebridProvider', 'AllDebridError', 'AllDebridAPIError', 'AllDebridAuthError']
