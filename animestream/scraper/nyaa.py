import logging
import re
from typing import List
from urllib.parse import quote_plus

from bs4 import BeautifulSoup

from animestream.debrid.common.utils import extract_hash_from_magnet
from animestream.scraper.base import IndexerAdapter, RawRelease, ScraperError, make_release, timestamp_to_datetime
from animestream.utilities.settings import get_setting

MAGNET_HREF = re.compile(r'^magnet:')


class NyaaAdapter(IndexerAdapter):
    name = 'nyaa'
    supports_text_search = True

    def __init__(self, api, base_url=None, category=None, timeout=None):
        super().__init__(api, base_url or get_setting('Scraping', 'nyaa_url'), timeout)
        self.category = category or get_setting('Scraping', 'nyaa_category')

    def search_url(self, query: str) -> str:
        return f"{self.base_url}/?f=0&c={self.category}&q={quote_plus(query)}&s=seeders&o=desc"

    async def search(self, query: str) -> List[RawRelease]:
        url = self.search_url(query)
        logging.info(f"Searching Nyaa for '{query}'")
        response = await self.fetch(url)
        results = parse_nyaa_results(response.text)
        logging.info(f"Nyaa returned {len(results)} results for '{query}'")
        return self.keep_valid(results)


def parse_nyaa_results(content: str) -> List[RawRelease]:
    """Parse the Nyaa search results table."""
    soup = BeautifulSoup(content, 'html.parser')
    table = soup.find('table', class_='torrent-list')
    rows = soup.select("tr.danger,tr.default,tr.success")
    if not rows:
        if table is None and 'No results found' not in content:
            raise ScraperError("Nyaa page has no results table")
        return []

    results = []
    for row in rows:
        magnet_tag = row.find('a', href=MAGNET_HREF)
        if not magnet_tag:
            continue
        magnet = magnet_tag.get('href', '')

        name_cell = row.find('td', {'colspan': '2'})
        if name_cell is None:
            continue
        links = [a for a in name_cell.find_all('a') if 'comments' not in (a.get('class') or [])]
        if not links:
            continue
        title = links[-1].get('title') or links[-1].text.strip()

        cells = row.find_all('td', {'class': 'text-center'})
        if len(cells) < 4:
            continue
        size = cells[1].text.strip()
        published_at = timestamp_to_datetime(cells[2].get('data-timestamp'))
        try:
            seeders = int(cells[3].text.strip())
        except (ValueError, TypeError):
            seeders = 0

        try:
            content_hash = extract_hash_from_magnet(magnet)
        except ValueError:
            logging.debug(f"Skipping Nyaa row without a usable magnet: {title}")
            continue

        results.append(make_release(title, content_hash, magnet, seeders, size, published_at))
    return results
