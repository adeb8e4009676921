from abc import ABC, abstractmethod
from typing import List, Optional
import logging

from animestream.api_tracker import ApiTracker
from animestream.models import RemoteFile
from .status import RemoteStatus

class DebridProviderError(Exception):
    """Base exception class for all debrid provider errors"""
    pass

class ProviderUnavailableError(DebridProviderError):
    """Exception raised when the debrid service is unavailable"""
    pass

class TorrentAdditionError(DebridProviderError):
    """Exception raised when there is an error adding a torrent to the debrid service"""
    pass

class RateLimitError(DebridProviderError):
    """Exception raised when the debrid service rate limit is exceeded"""
    pass

class DebridAuthError(DebridProviderError):
    """Exception raised when the API key is missing or rejected"""
    pass

class DebridProvider(ABC):
    """Capabilities every debrid provider exposes to the resolver.

    submit uploads a magnet and returns its first status; poll_status,
    list_files and unlock_file work on the provider's torrent id.
    """

    name = 'debrid'

    def __init__(self, api_key: str, api: ApiTracker):
        if not api_key:
            raise DebridAuthError(f"No API key given for {self.name}")
        self.api_key = api_key
        self.api = api
        logging.debug(f"[{self.__class__.__name__}] initialized")

    @abstractmethod
    async def submit(self, magnet: str) -> RemoteStatus:
        """Add a magnet to the service"""
        pass

    @abstractmethod
    async def poll_status(self, torrent_id: str) -> RemoteStatus:
        pass

    @abstractmethod
    async def list_files(self, torrent_id: str) -> List[RemoteFile]:
        """Files of a finished torrent, with provider links where known"""
        pass

    @abstractmethod
    async def unlock_file(self, torrent_id: str, file: RemoteFile) -> str:
        """Return a direct, time-limited URL for one file"""
        pass

    async def remove(self, torrent_id: str) -> Optional[bool]:
        """Remove a torrent; providers without a delete endpoint ignore this"""
        return None
