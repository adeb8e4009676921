import unittest
import sys
import os
import json
import logging

import aiohttp
from tenacity import wait_none

# Add the project root to the path so we can import modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from animestream.api_tracker import ApiResponse
from animestream.models import RemoteFile
from animestream.debrid import (
    AllDebridProvider,
    DebridAuthError,
    ProviderUnavailableError,
    RateLimitError,
    RealDebridProvider,
    TorBoxProvider,
    get_debrid_provider,
    normalize_provider_name,
)
from animestream.debrid.common import api as common_api
from animestream.debrid.alldebrid.client import flatten_file_tree, status_from_code
from animestream.debrid.alldebrid.exceptions import AllDebridAuthError
from animestream.debrid.real_debrid.exceptions import RealDebridAuthError
from animestream.debrid.status import TorrentStatus
from animestream.debrid.torbox.exceptions import TorBoxAPIError


def response(payload=None, status=200):
    text = '' if payload is None else json.dumps(payload)
    return ApiResponse(status=status, text=text, url='https://api.test')


class ScriptedApi:
    """Replays canned responses in order and records every request"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    async def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class TestProviderRegistry(unittest.TestCase):

    def test_aliases(self):
        self.assertIsInstance(get_debrid_provider('rd', 'key', None), RealDebridProvider)
        self.assertIsInstance(get_debrid_provider('Real-Debrid', 'key', None), RealDebridProvider)
        self.assertIsInstance(get_debrid_provider('ad', 'key', None), AllDebridProvider)
        self.assertIsInstance(get_debrid_provider('TorBox', 'key', None), TorBoxProvider)
        self.assertEqual(normalize_provider_name('tb'), 'torbox')

    def test_unknown_provider(self):
        with self.assertRaises(ValueError):
            get_debrid_provider('premiumize', 'key', None)
        with self.assertRaises(ValueError):
            normalize_provider_name(None)

    def test_missing_key(self):
        with self.assertRaises(DebridAuthError):
            get_debrid_provider('rd', '', None)


class TestMakeRequest(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        logging.basicConfig(level=logging.ERROR)
        self.make_request = common_api.make_request.retry_with(wait=wait_none())

    async def test_retries_unavailable_service(self):
        api = ScriptedApi(response(status=503), response(status=503), response({'ok': True}))
        self.assertEqual(await self.make_request(api, 'GET', 'https://api.test/x'), {'ok': True})
        self.assertEqual(len(api.requests), 3)

    async def test_rate_limit_gives_up_after_three_attempts(self):
        api = ScriptedApi(response(status=429), response(status=429), response(status=429))
        with self.assertRaises(RateLimitError):
            await self.make_request(api, 'GET', 'https://api.test/x')
        self.assertEqual(len(api.requests), 3)

    async def test_transport_errors_are_retried(self):
        api = ScriptedApi(aiohttp.ClientConnectionError("reset"), response({'ok': True}))
        self.assertEqual(await self.make_request(api, 'GET', 'https://api.test/x'), {'ok': True})

    async def test_transport_errors_surface_as_unavailable(self):
        api = ScriptedApi(*[aiohttp.ClientConnectionError("reset")] * 3)
        with self.assertRaises(ProviderUnavailableError):
            await self.make_request(api, 'GET', 'https://api.test/x')

    async def test_auth_errors_are_not_retried(self):
        api = ScriptedApi(response(status=401))
        with self.assertRaises(DebridAuthError):
            await self.make_request(api, 'GET', 'https://api.test/x')
        self.assertEqual(len(api.requests), 1)

    async def test_empty_body(self):
        api = ScriptedApi(response(status=204))
        self.assertEqual(await self.make_request(api, 'POST', 'https://api.test/x'), {})


class TestRealDebrid(unittest.IsolatedAsyncioTestCase):

    async def test_submit_selects_video_files(self):
        api = ScriptedApi(
            response({'id': 'RD1'}),
            response({'status': 'waiting_files_selection', 'files': [
                {'id': 1, 'path': '/Frieren - 05.mkv', 'bytes': 100},
                {'id': 2, 'path': '/readme.txt', 'bytes': 1},
            ]}),
            response(status=204),
            response({'status': 'downloaded', 'progress': 100}),
        )
        provider = RealDebridProvider('key', api)

        result = await provider.submit('magnet:?xt=urn:btih:' + 'a' * 40)

        self.assertEqual(result.torrent_id, 'RD1')
        self.assertEqual(result.status, TorrentStatus.DOWNLOADED)
        method, url, kwargs = api.requests[2]
        self.assertEqual(url, 'https://api.real-debrid.com/rest/1.0/torrents/selectFiles/RD1')
        self.assertEqual(kwargs['data'], {'files': '1'})
        self.assertEqual(api.requests[0][2]['headers'], {'Authorization': 'Bearer key'})

    async def test_list_files_pairs_links_with_selected_files(self):
        api = ScriptedApi(response({'status': 'downloaded', 'links': ['link-1', 'link-3'], 'files': [
            {'id': 1, 'path': '/Show/Ep 01.mkv', 'bytes': 10, 'selected': 1},
            {'id': 2, 'path': '/Show/readme.txt', 'bytes': 1, 'selected': 0},
            {'id': 3, 'path': '/Show/Ep 02.mkv', 'bytes': 20, 'selected': 1},
        ]}))
        files = await RealDebridProvider('key', api).list_files('RD1')
        self.assertEqual([(f.file_id, f.path, f.link) for f in files],
                         [('1', 'Show/Ep 01.mkv', 'link-1'), ('3', 'Show/Ep 02.mkv', 'link-3')])

    async def test_unlock(self):
        api = ScriptedApi(response({'download': 'https://download.real-debrid.com/x.mkv'}))
        url = await RealDebridProvider('key', api).unlock_file('RD1', RemoteFile('1', 'x.mkv', link='link-1'))
        self.assertEqual(url, 'https://download.real-debrid.com/x.mkv')

    async def test_status_mapping(self):
        api = ScriptedApi(response({'status': 'magnet_error'}))
        result = await RealDebridProvider('key', api).poll_status('RD1')
        self.assertTrue(result.is_error)

    async def test_bad_key(self):
        api = ScriptedApi(response(status=401))
        with self.assertRaises(RealDebridAuthError):
            await RealDebridProvider('key', api).poll_status('RD1')


class TestAllDebrid(unittest.IsolatedAsyncioTestCase):

    def test_status_codes(self):
        self.assertEqual(status_from_code(4), TorrentStatus.DOWNLOADED)
        self.assertEqual(status_from_code(0), TorrentStatus.QUEUED)
        self.assertEqual(status_from_code('2'), TorrentStatus.DOWNLOADING)
        self.assertEqual(status_from_code(7), TorrentStatus.ERROR)
        self.assertEqual(status_from_code(None), TorrentStatus.UNKNOWN)

    def test_flatten_file_tree(self):
        files = flatten_file_tree([{'n': 'Frieren', 'e': [
            {'n': 'Frieren - 05.mkv', 's': 100, 'l': 'https://alldebrid.com/f/1'},
        ]}])
        self.assertEqual(files[0].path, 'Frieren/Frieren - 05.mkv')
        self.assertEqual(files[0].link, 'https://alldebrid.com/f/1')

    async def test_submit_ready_magnet(self):
        api = ScriptedApi(response({'status': 'success', 'data': {'magnets': [{'id': 123, 'ready': True}]}}))

        result = await AllDebridProvider('key', api).submit('magnet:?xt=urn:btih:' + 'a' * 40)

        self.assertEqual(result.torrent_id, '123')
        self.assertTrue(result.is_ready)
        method, url, kwargs = api.requests[0]
        self.assertEqual(url, 'https://api.alldebrid.com/v4/magnet/upload')
        self.assertEqual(kwargs['params'], {'agent': 'animestream'})

    async def test_poll_progress(self):
        api = ScriptedApi(response({'status': 'success', 'data': {'magnets': {
            'id': 123, 'statusCode': 1, 'size': 200, 'downloaded': 50,
        }}}))
        result = await AllDebridProvider('key', api).poll_status('123')
        self.assertEqual(result.status, TorrentStatus.DOWNLOADING)
        self.assertEqual(result.progress, 25.0)
        self.assertEqual(api.requests[0][1], 'https://api.alldebrid.com/v4.1/magnet/status')

    async def test_error_body(self):
        api = ScriptedApi(response({'status': 'error', 'error': {'code': 'AUTH_BAD_APIKEY', 'message': 'bad'}}))
        with self.assertRaises(AllDebridAuthError):
            await AllDebridProvider('key', api).poll_status('123')

    async def test_list_files_and_unlock(self):
        api = ScriptedApi(
            response({'status': 'success', 'data': {'magnets': [{'id': 123, 'files': [
                {'n': 'Frieren - 05.mkv', 's': 100, 'l': 'https://alldebrid.com/f/1'},
            ]}]}}),
            response({'status': 'success', 'data': {'link': 'https://cdn.alldebrid.com/x.mkv'}}),
        )
        provider = AllDebridProvider('key', api)
        files = await provider.list_files('123')
        self.assertEqual(await provider.unlock_file('123', files[0]), 'https://cdn.alldebrid.com/x.mkv')


class TestTorBox(unittest.IsolatedAsyncioTestCase):

    def test_status_mapping(self):
        provider = TorBoxProvider('key', None)
        downloading = provider._to_status('7', {'download_state': 'downloading', 'progress': 0.5})
        self.assertEqual((downloading.status, downloading.progress), (TorrentStatus.DOWNLOADING, 50.0))
        self.assertTrue(provider._to_status('7', {'download_present': True, 'download_finished': True}).is_ready)
        self.assertTrue(provider._to_status('7', {'download_state': 'error'}).is_error)
        self.assertEqual(provider._to_status('7', {'download_state': 'metaDL'}).status, TorrentStatus.QUEUED)

    async def test_submit_polls_once(self):
        api = ScriptedApi(
            response({'success': True, 'data': {'torrent_id': 7}}),
            response({'success': True, 'data': {'id': 7, 'download_state': 'cached', 'download_present': True,
                                                 'progress': 1}}),
        )
        result = await TorBoxProvider('key', api).submit('magnet:?xt=urn:btih:' + 'a' * 40)
        self.assertEqual(result.torrent_id, '7')
        self.assertTrue(result.is_ready)

    async def test_unlock_passes_token(self):
        api = ScriptedApi(response({'success': True, 'data': 'https://store.torbox.app/x.mkv'}))
        url = await TorBoxProvider('key', api).unlock_file('7', RemoteFile('3', 'x.mkv'))
        self.assertEqual(url, 'https://store.torbox.app/x.mkv')
        self.assertEqual(api.requests[0][2]['params'], {'token': 'key', 'torrent_id': '7', 'file_id': '3'})

    async def test_unsuccessful_response(self):
        api = ScriptedApi(response({'success': False, 'detail': 'No torrent found'}))
        with self.assertRaises(TorBoxAPIError):
            await TorBoxProvider('key', api).poll_status('7')


if __name__ == '__main__':
    unittest.main()
