import logging
from typing import Any, Dict, List
from urllib.parse import quote_plus

from animestream.debrid.common.utils import build_magnet
from animestream.scraper.base import IndexerAdapter, RawRelease, ScraperError, make_release, timestamp_to_datetime
from animestream.scraper.functions.release_metadata import format_size_label
from animestream.utilities.settings import get_setting


class AnimeToshoAdapter(IndexerAdapter):
    name = 'animetosho'
    supports_text_search = True

    def __init__(self, api, base_url=None, timeout=None):
        super().__init__(api, base_url or get_setting('Scraping', 'animetosho_url'), timeout)

    def search_url(self, query: str) -> str:
        return f"{self.base_url}/json?q={quote_plus(query)}"

    async def search(self, query: str) -> List[RawRelease]:
        logging.info(f"Searching AnimeTosho for '{query}'")
        data = await self.fetch_json(self.search_url(query))
        if not isinstance(data, list):
            raise ScraperError(f"AnimeTosho returned {type(data).__name__} instead of a list")
        results = [parse_tosho_item(item) for item in data if isinstance(item, dict)]
        logging.info(f"AnimeTosho returned {len(results)} results for '{query}'")
        return self.keep_valid(results)


def parse_tosho_item(item: Dict[str, Any]) -> RawRelease:
    title = item.get('title') or ''
    content_hash = (item.get('info_hash') or '').lower()
    magnet = item.get('magnet_uri') or (build_magnet(content_hash, title) if content_hash else '')
    try:
        seeders = int(item.get('seeders') or 0)
    except (TypeError, ValueError):
        seeders = 0
    return make_release(
        title,
        content_hash,
        magnet,
        seeders,
        format_size_label(item.get('total_size')),
        timestamp_to_datetime(item.get('timestamp')),
    )
