"""Indexer adapter interface.

Adapters return raw release records, plain dicts with the keys
title, content_hash, magnet, seeders, size_label and published_at.
"""
import logging
from abc import ABC
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from animestream.api_tracker import ApiResponse, ApiTracker, TRANSPORT_ERRORS
from animestream.debrid.common.utils import is_valid_hash
from animestream.utilities.settings import get_int_setting

RawRelease = Dict[str, Any]


class ScraperError(Exception):
    """Raised when an indexer cannot be queried or its response cannot be read"""
    pass


def make_release(title: str, content_hash: str, magnet: str, seeders: int = 0,
                 size_label: str = '', published_at: Optional[datetime] = None) -> RawRelease:
    return {
        'title': title,
        'content_hash': content_hash.lower(),
        'magnet': magnet,
        'seeders': seeders,
        'size_label': size_label,
        'published_at': published_at,
    }


def timestamp_to_datetime(value: Any) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


class IndexerAdapter(ABC):
    """Base class for indexers; subclasses implement search, lookup, or both."""

    name = 'indexer'
    supports_text_search = False
    supports_id_lookup = False

    def __init__(self, api: ApiTracker, base_url: str, timeout: Optional[float] = None):
        self.api = api
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout if timeout is not None else get_int_setting('Scraping', 'scraper_timeout')

    async def search(self, query: str) -> List[RawRelease]:
        """Text search; adapters without it return no releases."""
        return []

    async def lookup(self, external_id: str, season: Optional[int], episode: Optional[int]) -> List[RawRelease]:
        """Id lookup; adapters without it return no releases."""
        return []

    async def fetch(self, url: str, **kwargs) -> ApiResponse:
        try:
            response = await self.api.get(url, timeout=self.timeout, **kwargs)
        except TRANSPORT_ERRORS as e:
            raise ScraperError(f"{self.name} request failed: {e!r}") from e
        if response.status != 200:
            raise ScraperError(f"{self.name} returned HTTP {response.status}")
        return response

    async def fetch_json(self, url: str, **kwargs) -> Any:
        response = await self.fetch(url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise ScraperError(f"{self.name} returned malformed JSON: {e}") from e

    def keep_valid(self, releases: List[RawRelease]) -> List[RawRelease]:
        valid = [r for r in releases if r['title'] and is_valid_hash(r['content_hash'])]
        dropped = len(releases) - len(valid)
        if dropped:
            logging.debug(f"[{self.name}] dropped {dropped} records without title or content hash")
        return valid
