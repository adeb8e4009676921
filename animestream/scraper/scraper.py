from typing import List, Optional, Sequence

from animestream.api_tracker import ApiTracker
from animestream.cache import ResolutionCaches
from animestream.models import ShowRequest, TorrentCandidate
from animestream.scraper.base import IndexerAdapter
from animestream.scraper.scraper_manager import TorrentAcquisition


async def acquire_candidates(show: ShowRequest, season: Optional[int], episode: Optional[int],
                             caches: ResolutionCaches, api: ApiTracker,
                             adapters: Optional[Sequence[IndexerAdapter]] = None) -> List[TorrentCandidate]:
    """
    Validated, ranked release candidates for one episode of a show.

    Returns an empty list when nothing matches; indexer failures are logged
    and never raised.
    """
    acquisition = TorrentAcquisition(caches, api, adapters)
    return await acquisition.acquire(show, season, episode)
