from animestream.api_tracker import ApiTracker
from .base import (
    DebridProvider,
    DebridProviderError,
    DebridAuthError,
    ProviderUnavailableError,
    RateLimitError,
    TorrentAdditionError,
)
from .status import RemoteStatus, TorrentStatus
from .real_debrid import RealDebridProvider
from .alldebrid import AllDebridProvider
from .torbox import TorBoxProvider
from .common import (
    extract_hash_from_magnet,
    build_magnet,
    is_video_file,
    is_unwanted_file,
)

PROVIDERS = {
    'realdebrid': RealDebridProvider,
    'real-debrid': RealDebridProvider,
    'rd': RealDebridProvider,
    'alldebrid': AllDebridProvider,
    'ad': AllDebridProvider,
    'torbox': TorBoxProvider,
    'tb': TorBoxProvider,
}

def normalize_provider_name(provider_name: str) -> str:
    """Canonical provider name, used in cache keys"""
    provider_class = PROVIDERS.get((provider_name or '').strip().lower())
    if provider_class is None:
        raise ValueError(f"Unknown debrid provider: {provider_name}")
    return provider_class.name

def get_debrid_provider(provider_name: str, api_key: str, api: ApiTracker) -> DebridProvider:
    """
    Factory function that returns a provider instance for the given name.
    Names are matched case-insensitively, including short aliases (rd, ad, tb).
    """
    provider_class = PROVIDERS.get((provider_name or '').strip().lower())
    if provider_class is None:
        raise ValueError(f"Unknown debrid provider: {provider_name}")
    return provider_class(api_key, api)

# Export public interface
__all__ = [
    'get_debrid_provider',
    'normalize_provider_name',
    'PROVIDERS',
    'DebridProvider',
    'DebridProviderError',
    'DebridAuthError',
    'ProviderUnavailableError',
    'RateLimitError',
    'TorrentAdditionError',
    'RemoteStatus',
    'TorrentStatus',
    'RealDebridProvider',
    'AllDebridProvider',
    'TorBoxProvider',
    'extract_hash_from_magnet',
    'build_magnet',
    'is_video_file',
    'is_unwanted_file',
]
