"""
Debrid resolution: submit a release, wait for it, pick the episode file and
unlock a direct URL.

Every outcome is returned as a value (Ready, Pending, Mislabeled, Error);
provider, transport and malformed-response failures never escape
resolve_direct. Only Ready
outcomes are cached, keyed by provider, content hash and episode.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Optional

from animestream.api_tracker import ApiTracker, TRANSPORT_ERRORS
from animestream.cache import ResolutionCaches
from animestream.models import DebridResolutionOutcome, Error, Mislabeled, Pending, Ready, TorrentCandidate
from animestream.utilities.settings import get_float_setting, get_int_setting
from . import get_debrid_provider, normalize_provider_name
from .base import DebridProvider, DebridProviderError
from .file_selection import filename_matches_show, select_episode_file
from .status import RemoteStatus

SleepFunc = Callable[[float], Awaitable[None]]

# Raised while reading a well-formed body with unexpected field types or shapes.
MALFORMED_RESPONSE_ERRORS = (KeyError, IndexError, TypeError, ValueError, AttributeError)


def direct_url_cache_key(provider_name: str, content_hash: str, episode: int) -> str:
    return f"{provider_name}:{content_hash.lower()}:{episode}"


class DebridResolver:
    def __init__(self, caches: ResolutionCaches, api: ApiTracker,
                 poll_interval: Optional[float] = None, max_poll_attempts: Optional[int] = None,
                 sleep: SleepFunc = asyncio.sleep,
                 provider_factory: Callable[[str, str, ApiTracker], DebridProvider] = get_debrid_provider):
        self.caches = caches
        self.api = api
        self.poll_interval = poll_interval if poll_interval is not None else get_float_setting('Debrid', 'poll_interval')
        self.max_poll_attempts = (max_poll_attempts if max_poll_attempts is not None
                                  else get_int_setting('Debrid', 'max_poll_attempts'))
        self._sleep = sleep
        self._provider_factory = provider_factory

    async def resolve_direct(self, candidate: TorrentCandidate, provider_name: str, credential: str,
                             season: Optional[int], episode: int, expected_name: str,
                             alternate_names: Iterable[str] = (),
                             absolute_episode: Optional[int] = None) -> DebridResolutionOutcome:
        try:
            canonical = normalize_provider_name(provider_name)
        except ValueError as e:
            return Error(str(e))

        key = direct_url_cache_key(canonical, candidate.content_hash, episode)
        cached = self.caches.direct_urls.get(key)
        if isinstance(cached, Ready):
            logging.debug(f"Direct URL cache hit for {key}")
            return cached

        try:
            provider = self._provider_factory(canonical, credential, self.api)
            outcome = await self._resolve(provider, candidate, season, episode, expected_name,
                                          list(alternate_names), absolute_episode)
        except DebridProviderError as e:
            logging.error(f"[{canonical}] resolution of {candidate.title} failed: {e}")
            return Error(f"{canonical}: {e}")
        except TRANSPORT_ERRORS as e:
            logging.error(f"[{canonical}] network error while resolving {candidate.title}: {e!r}")
            return Error(f"{canonical}: network error")
        except MALFORMED_RESPONSE_ERRORS as e:
            logging.error(f"[{canonical}] unexpected response while resolving {candidate.title}: {e!r}")
            return Error(f"{canonical}: unexpected response from provider")

        if isinstance(outcome, Ready):
            self.caches.direct_urls.set(key, outcome)
        return outcome

    async def _resolve(self, provider: DebridProvider, candidate: TorrentCandidate, season: Optional[int],
                       episode: int, expected_name: str, alternate_names, absolute_episode) -> DebridResolutionOutcome:
        status = await provider.submit(candidate.magnet)
        logging.info(f"[{provider.name}] submitted {candidate.content_hash}: {status.status.value}")

        if not status.is_ready and not status.is_error:
            status = await self.wait_until_ready(provider, status)

        if status.is_error:
            return Error(f"{provider.name} reported an error for {candidate.title}: {status.message or 'unknown'}")
        if not status.is_ready:
            return Pending(f"Not cached on {provider.name} yet ({status.progress:.0f}%), try again later")

        files = await provider.list_files(status.torrent_id)
        selection = select_episode_file(files, season, episode, absolute_episode)
        if selection is None:
            return Error(f"No playable video in {candidate.title}")

        if not filename_matches_show(selection.file.path, expected_name, alternate_names):
            logging.warning(f"Mislabeled release: expected {expected_name}, got {selection.file.path}")
            return Mislabeled(expected_name=expected_name, actual_filename=selection.file.filename)

        url = await provider.unlock_file(status.torrent_id, selection.file)
        return Ready(direct_url=url, filename=selection.file.filename, is_fallback=selection.is_fallback)

    async def wait_until_ready(self, provider: DebridProvider, status: RemoteStatus) -> RemoteStatus:
        """Poll at a fixed interval; stops on ready or error, else after the attempt budget."""
        for attempt in range(1, self.max_poll_attempts + 1):
            await self._sleep(self.poll_interval)
            status = await provider.poll_status(status.torrent_id)
            logging.debug(f"[{provider.name}] poll {attempt}/{self.max_poll_attempts} for "
                          f"{status.torrent_id}: {status.status.value} {status.progress:.0f}%")
            if status.is_ready or status.is_error:
                return status
        return status


async def resolve_direct(candidate: TorrentCandidate, provider: str, credential: str, season: Optional[int],
                         episode: int, expected_name: str, caches: ResolutionCaches, api: ApiTracker,
                         **kwargs) -> DebridResolutionOutcome:
    """Resolve one candidate to a direct URL with a resolver built from settings."""
    return await DebridResolver(caches, api).resolve_direct(candidate, provider, credential, season,
                                                            episode, expected_name, **kwargs)
