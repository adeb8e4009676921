import asyncio
import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from animestream.api_tracker import ApiTracker
from animestream.cache import ResolutionCaches
from animestream.models import ShowRequest, TorrentCandidate
from animestream.scraper.animetosho import AnimeToshoAdapter
from animestream.scraper.base import IndexerAdapter, RawRelease
from animestream.scraper.functions.anime_utils import (
    convert_to_absolute_episode,
    expand_alternate_names,
    has_absolute_mapping,
)
from animestream.scraper.functions.episode_validator import filter_torrents_by_episode
from animestream.scraper.functions.release_metadata import (
    detect_quality,
    detect_release_group,
    detect_source,
    is_raw_release,
)
from animestream.scraper.nyaa import NyaaAdapter
from animestream.scraper.torrentio import TorrentioAdapter
from animestream.utilities.settings import get_int_setting, get_setting

# Tried in order until one yields results
QUERY_TEMPLATES = (
    '{short} {episode:02d}',
    '{full} {episode:02d}',
    '{full} Season {season}',
)


def build_adapters(api: ApiTracker) -> List[IndexerAdapter]:
    adapters: List[IndexerAdapter] = []
    if get_setting('Scraping', 'torrentio_enabled'):
        adapters.append(TorrentioAdapter(api))
    if get_setting('Scraping', 'nyaa_enabled'):
        adapters.append(NyaaAdapter(api))
    if get_setting('Scraping', 'animetosho_enabled'):
        adapters.append(AnimeToshoAdapter(api))
    return adapters


def build_queries(name: str, season: Optional[int], episode: Optional[int]) -> List[str]:
    full = ' '.join(name.split())
    short = full.split(':', 1)[0].strip() or full
    queries: List[str] = []
    for template in QUERY_TEMPLATES:
        if '{episode' in template and episode is None:
            continue
        if '{season}' in template and season is None:
            continue
        query = template.format(short=short, full=full, season=season, episode=episode)
        if query not in queries:
            queries.append(query)
    return queries


def to_candidate(record: RawRelease, provider: str, from_id_lookup: bool) -> TorrentCandidate:
    title = record['title']
    return TorrentCandidate(
        title=title,
        content_hash=record['content_hash'],
        magnet=record['magnet'],
        quality=detect_quality(title),
        source_type=detect_source(title),
        is_raw_no_subtitles=is_raw_release(title),
        release_group=detect_release_group(title),
        seeders=int(record.get('seeders') or 0),
        size_label=record.get('size_label') or '',
        provider=provider,
        published_at=record.get('published_at'),
        from_id_lookup=from_id_lookup,
    )


def merge_candidates(*groups: Iterable[TorrentCandidate]) -> List[TorrentCandidate]:
    """Deduplicate by content hash, earlier groups winning, then rank by quality and seeders."""
    merged: Dict[str, TorrentCandidate] = {}
    for group in groups:
        for candidate in group:
            if candidate.content_hash not in merged:
                merged[candidate.content_hash] = candidate
    return sorted(merged.values(), key=lambda c: (-c.quality.rank, -c.seeders))


class TorrentAcquisition:
    """Fans a show/episode request out to the indexers and keeps what validates."""

    def __init__(self, caches: ResolutionCaches, api: ApiTracker,
                 adapters: Optional[Sequence[IndexerAdapter]] = None,
                 identity_threshold: Optional[int] = None,
                 strict_threshold: Optional[int] = None,
                 max_alternate_names: Optional[int] = None):
        self.caches = caches
        self.adapters = list(adapters) if adapters is not None else build_adapters(api)
        self.identity_threshold = (identity_threshold if identity_threshold is not None
                                   else get_int_setting('Scraping', 'identity_threshold'))
        self.strict_threshold = (strict_threshold if strict_threshold is not None
                                 else get_int_setting('Scraping', 'identity_threshold_strict'))
        self.max_alternate_names = (max_alternate_names if max_alternate_names is not None
                                    else get_int_setting('Scraping', 'max_alternate_names'))

    @property
    def id_adapters(self) -> List[IndexerAdapter]:
        return [a for a in self.adapters if a.supports_id_lookup]

    @property
    def text_adapters(self) -> List[IndexerAdapter]:
        return [a for a in self.adapters if a.supports_text_search]

    async def acquire(self, show: ShowRequest, season: Optional[int], episode: Optional[int]) -> List[TorrentCandidate]:
        cache_key = f"{show.name.lower()}:{season}:{episode}"
        cached = self.caches.torrents.get(cache_key)
        if cached is not None:
            logging.debug(f"Torrent list cache hit for {cache_key}")
            return list(cached)

        alternates = expand_alternate_names(show.name, show.alternate_names)
        show = replace(show, alternate_names=tuple(alternates))

        absolute_episode = None
        if episode is not None and has_absolute_mapping(show.external_id):
            absolute_episode = convert_to_absolute_episode(show.external_id, season, episode)
        search_episode = absolute_episode if absolute_episode is not None else episode

        (id_results, id_lookup_failed), text_results = await asyncio.gather(
            self.lookup_by_id(show, season, episode),
            self.search_text(show.name, season, search_episode),
        )

        merged = merge_candidates(id_results, text_results)
        accepted = self._filter(merged, show, season, episode, id_lookup_failed, absolute_episode)

        if not accepted and alternates:
            logging.info(f"No candidates for {show.name}; retrying with alternate names")
            for name in alternates[:self.max_alternate_names]:
                alternate_results = await self.search_text(name, season, search_episode)
                merged = merge_candidates(merged, alternate_results)
                accepted = self._filter(merged, show, season, episode, id_lookup_failed, absolute_episode)
                if accepted:
                    break

        logging.info(f"Acquired {len(accepted)} candidates for {show.name} S{season}E{episode}")
        if accepted:
            self.caches.torrents.set(cache_key, list(accepted))
        return accepted

    def _filter(self, candidates, show, season, episode, id_lookup_failed, absolute_episode):
        return filter_torrents_by_episode(
            candidates, show, season, episode,
            threshold=self.identity_threshold,
            id_check_failed=id_lookup_failed,
            strict_threshold=self.strict_threshold,
            absolute_episode=absolute_episode,
        )

    async def lookup_by_id(self, show: ShowRequest, season, episode) -> Tuple[List[TorrentCandidate], bool]:
        """Return (candidates, failed); failed means a lookup was attempted and produced nothing."""
        if not show.external_id or not self.id_adapters:
            return [], False

        async def run(adapter: IndexerAdapter) -> Optional[List[RawRelease]]:
            key = f"{adapter.name}:{show.external_id}:{season}:{episode}"
            try:
                return await self.caches.search.get_or_fetch(
                    key, lambda: adapter.lookup(show.external_id, season, episode))
            except Exception as e:
                logging.warning(f"[{adapter.name}] id lookup for {show.external_id} failed: {e}")
                return None

        outcomes = await asyncio.gather(*(run(a) for a in self.id_adapters))
        candidates = [
            to_candidate(record, adapter.name, from_id_lookup=True)
            for adapter, records in zip(self.id_adapters, outcomes)
            for record in records or []
        ]
        return candidates, not candidates

    async def search_text(self, name: str, season, episode) -> List[TorrentCandidate]:
        queries = build_queries(name, season, episode)

        async def run(adapter: IndexerAdapter) -> List[RawRelease]:
            for query in queries:
                key = f"{adapter.name}:{query}:{episode}"
                try:
                    records = await self.caches.search.get_or_fetch(key, lambda q=query: adapter.search(q))
                except Exception as e:
                    logging.warning(f"[{adapter.name}] search for '{query}' failed: {e}")
                    return []
                if records:
                    return records
            return []

        outcomes = await asyncio.gather(*(run(a) for a in self.text_adapters))
        return [
            to_candidate(record, adapter.name, from_id_lookup=False)
            for adapter, records in zip(self.text_adapters, outcomes)
            for record in records
        ]
