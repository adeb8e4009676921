import logging
import re
from typing import Any, Dict, List, Optional

from animestream.debrid.common.utils import build_magnet
from animestream.scraper.base import IndexerAdapter, RawRelease, ScraperError, make_release
from animestream.utilities.settings import get_setting

SEEDERS_PATTERN = re.compile(r'👤\s*(\d+)')
SIZE_PATTERN = re.compile(r'💾\s*([\d.,]+\s*[KMGT]i?B)', re.IGNORECASE)


class TorrentioAdapter(IndexerAdapter):
    """Looks releases up by IMDb (tt...) or Kitsu (kitsu:...) id."""

    name = 'torrentio'
    supports_id_lookup = True

    def __init__(self, api, base_url=None, opts=None, timeout=None):
        super().__init__(api, base_url or get_setting('Scraping', 'torrentio_url'), timeout)
        self.opts = (opts if opts is not None else get_setting('Scraping', 'torrentio_opts') or '').strip('/')

    def construct_url(self, external_id: str, season: Optional[int], episode: Optional[int]) -> str:
        prefix = f"{self.base_url}/{self.opts}" if self.opts else self.base_url
        if external_id.startswith('kitsu:'):
            stream_id = f"{external_id}:{episode}" if episode is not None else external_id
        elif season is not None and episode is not None:
            stream_id = f"{external_id}:{season}:{episode}"
        else:
            stream_id = external_id
        return f"{prefix}/stream/series/{stream_id}.json"

    async def lookup(self, external_id: str, season: Optional[int], episode: Optional[int]) -> List[RawRelease]:
        if not external_id.startswith(('tt', 'kitsu:')):
            logging.debug(f"Torrentio cannot look up id {external_id}")
            return []
        url = self.construct_url(external_id, season, episode)
        data = await self.fetch_json(url)
        if not isinstance(data, dict):
            raise ScraperError("Torrentio returned a non-object response")
        streams = data.get('streams') or []
        results = parse_results(streams)
        logging.info(f"Torrentio returned {len(results)} streams for {external_id} S{season}E{episode}")
        return self.keep_valid(results)


def parse_results(streams: List[Dict[str, Any]]) -> List[RawRelease]:
    results = []
    for stream in streams:
        raw_title = stream.get('title') or ''
        info_hash = (stream.get('infoHash') or '').lower()
        if not raw_title or not info_hash:
            continue

        title_parts = raw_title.split('\n')
        name = title_parts[0].strip()
        seeders = 0
        size_label = ''
        for metadata_line in title_parts[1:]:
            seeder_match = SEEDERS_PATTERN.search(metadata_line)
            if seeder_match:
                seeders = int(seeder_match.group(1))
            size_match = SIZE_PATTERN.search(metadata_line)
            if size_match:
                size_label = size_match.group(1)

        if not name:
            name = (stream.get('behaviorHints') or {}).get('filename') or ''
        results.append(make_release(name, info_hash, build_magnet(info_hash, name), seeders, size_label))
    return results
