import unittest
import sys
import os
import json
import asyncio

# Add the project root to the path so we can import modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from animestream.api_tracker import APIRateLimiter, ApiResponse
from animestream.scraper.animetosho import AnimeToshoAdapter
from animestream.scraper.base import ScraperError
from animestream.scraper.nyaa import NyaaAdapter, parse_nyaa_results
from animestream.scraper.torrentio import TorrentioAdapter, parse_results

HASH = "0123456789abcdef0123456789abcdef01234567"

NYAA_ROW = """
<tr class="{row_class}">
  <td><a href="/?c=1_2" title="Anime - English-translated"></a></td>
  <td colspan="2">
    <a href="/view/1#comments" class="comments" title="2 comments">2</a>
    <a href="/view/1" title="{title}">{title}</a>
  </td>
  <td class="text-center"><a href="/download/1.torrent"></a><a href="{magnet}"></a></td>
  <td class="text-center">1.4 GiB</td>
  <td class="text-center" data-timestamp="1700000000">2023-11-14 22:13</td>
  <td class="text-center">{seeders}</td>
  <td class="text-center">3</td>
  <td class="text-center">1000</td>
</tr>
"""


def nyaa_page(rows):
    return f'<html><body><table class="table torrent-list"><tbody>{"".join(rows)}</tbody></table></body></html>'


class FakeApi:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.urls = []

    async def get(self, url, **kwargs):
        self.urls.append(url)
        if self.error:
            raise self.error
        return self.response


def json_response(payload, status=200):
    return ApiResponse(status=status, text=json.dumps(payload))


class TestNyaa(unittest.IsolatedAsyncioTestCase):

    def test_parse_rows(self):
        page = nyaa_page([
            NYAA_ROW.format(row_class='success', title='[SubsPlease] Frieren - 05 (1080p)',
                            magnet=f'magnet:?xt=urn:btih:{HASH.upper()}&amp;dn=x', seeders='512'),
            NYAA_ROW.format(row_class='default', title='Broken magnet', magnet='magnet:?xt=urn:btih:1234',
                            seeders='1'),
        ])
        results = parse_nyaa_results(page)
        self.assertEqual(len(results), 1)
        release = results[0]
        self.assertEqual(release['title'], '[SubsPlease] Frieren - 05 (1080p)')
        self.assertEqual(release['content_hash'], HASH)
        self.assertEqual(release['seeders'], 512)
        self.assertEqual(release['size_label'], '1.4 GiB')
        self.assertEqual(release['published_at'].year, 2023)

    def test_empty_results_page(self):
        self.assertEqual(parse_nyaa_results('<html><body><h3>No results found</h3></body></html>'), [])
        self.assertEqual(parse_nyaa_results(nyaa_page([])), [])

    def test_unexpected_page(self):
        with self.assertRaises(ScraperError):
            parse_nyaa_results('<html><body>Maintenance</body></html>')

    async def test_search(self):
        page = nyaa_page([NYAA_ROW.format(row_class='success', title='[SubsPlease] Frieren - 05 (1080p)',
                                          magnet=f'magnet:?xt=urn:btih:{HASH}', seeders='10')])
        api = FakeApi(ApiResponse(status=200, text=page))
        adapter = NyaaAdapter(api, base_url='https://nyaa.si', category='1_2', timeout=5)

        results = await adapter.search('Frieren 05')

        self.assertEqual(len(results), 1)
        self.assertEqual(api.urls, ['https://nyaa.si/?f=0&c=1_2&q=Frieren+05&s=seeders&o=desc'])

    async def test_http_error_raises(self):
        adapter = NyaaAdapter(FakeApi(ApiResponse(status=503, text='')), base_url='https://nyaa.si',
                              category='1_2', timeout=5)
        with self.assertRaises(ScraperError):
            await adapter.search('Frieren 05')

    async def test_transport_error_raises(self):
        adapter = NyaaAdapter(FakeApi(error=asyncio.TimeoutError()), base_url='https://nyaa.si',
                              category='1_2', timeout=5)
        with self.assertRaises(ScraperError):
            await adapter.search('Frieren 05')


class TestAnimeTosho(unittest.IsolatedAsyncioTestCase):

    async def test_search(self):
        api = FakeApi(json_response([{
            'title': '[SubsPlease] Frieren - 05 (1080p)',
            'info_hash': HASH.upper(),
            'magnet_uri': None,
            'seeders': '12',
            'total_size': 1503238553,
            'timestamp': 1700000000,
        }, {
            'title': 'No hash here',
            'info_hash': None,
        }]))
        adapter = AnimeToshoAdapter(api, base_url='https://feed.animetosho.org', timeout=5)

        results = await adapter.search('Frieren 05')

        self.assertEqual(len(results), 1)
        self.assertEqual(results[0]['content_hash'], HASH)
        self.assertTrue(results[0]['magnet'].startswith(f'magnet:?xt=urn:btih:{HASH}'))
        self.assertEqual(results[0]['seeders'], 12)
        self.assertEqual(results[0]['size_label'], '1.4 GB')
        self.assertEqual(api.urls, ['https://feed.animetosho.org/json?q=Frieren+05'])

    async def test_non_list_response(self):
        adapter = AnimeToshoAdapter(FakeApi(json_response({'error': 'busy'})),
                                    base_url='https://feed.animetosho.org', timeout=5)
        with self.assertRaises(ScraperError):
            await adapter.search('Frieren 05')

    async def test_malformed_json(self):
        adapter = AnimeToshoAdapter(FakeApi(ApiResponse(status=200, text='<html>')),
                                    base_url='https://feed.animetosho.org', timeout=5)
        with self.assertRaises(ScraperError):
            await adapter.search('Frieren 05')


class TestTorrentio(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.api = FakeApi(json_response({'streams': [{
            'name': 'Torrentio\n1080p',
            'title': 'One Piece - 1071 [1080p]\n👤 150 💾 1.4 GB ⚙️ NyaaSi',
            'infoHash': HASH.upper(),
        }]}))
        self.adapter = TorrentioAdapter(self.api, base_url='https://torrentio.strem.fun',
                                        opts='providers=nyaasi', timeout=5)

    def test_construct_url(self):
        self.assertEqual(self.adapter.construct_url('tt0388629', 21, 5),
                         'https://torrentio.strem.fun/providers=nyaasi/stream/series/tt0388629:21:5.json')
        self.assertEqual(self.adapter.construct_url('kitsu:12', 1, 5),
                         'https://torrentio.strem.fun/providers=nyaasi/stream/series/kitsu:12:5.json')

    def test_parse_results(self):
        results = parse_results([
            {'title': 'Frieren - 05\n👤 7 💾 700 MB', 'infoHash': HASH},
            {'title': 'No hash'},
        ])
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0]['title'], 'Frieren - 05')
        self.assertEqual(results[0]['seeders'], 7)
        self.assertEqual(results[0]['size_label'], '700 MB')

    async def test_lookup(self):
        results = await self.adapter.lookup('tt0388629', 21, 5)
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0]['title'], 'One Piece - 1071 [1080p]')
        self.assertEqual(results[0]['content_hash'], HASH)
        self.assertEqual(results[0]['seeders'], 150)

    async def test_unsupported_id(self):
        self.assertEqual(await self.adapter.lookup('12345', 1, 5), [])
        self.assertEqual(self.api.urls, [])

    async def test_text_search_is_unsupported(self):
        self.assertFalse(self.adapter.supports_text_search)
        self.assertEqual(await self.adapter.search('One Piece'), [])
        self.assertEqual(self.api.urls, [])


class TestApiRateLimiter(unittest.TestCase):

    def test_limits_are_reported(self):
        now = [0.0]
        limiter = APIRateLimiter(hourly_limit=2, five_minute_limit=10, clock=lambda: now[0])
        self.assertTrue(limiter.check_limits('nyaa.si'))
        self.assertTrue(limiter.check_limits('nyaa.si'))
        with self.assertLogs('api_calls', level='WARNING'):
            self.assertFalse(limiter.check_limits('nyaa.si'))
        self.assertTrue(limiter.check_limits('other.example'))
        now[0] = 3600
        self.assertTrue(limiter.check_limits('nyaa.si'))


if __name__ == '__main__':
    unittest.main()
