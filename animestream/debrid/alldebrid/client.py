import logging
from typing import Any, Dict, List

from animestream.models import RemoteFile
from ..base import DebridProvider, TorrentAdditionError
from ..status import RemoteStatus, TorrentStatus
from .api import MAGNET_STATUS_CODES, make_request
from .exceptions import AllDebridAPIError


def status_from_code(code: Any) -> TorrentStatus:
    try:
        code = int(code)
    except (TypeError, ValueError):
        return TorrentStatus.UNKNOWN
    if code == 4:
        return TorrentStatus.DOWNLOADED
    if code == 0:
        return TorrentStatus.QUEUED
    if 1 <= code <= 3:
        return TorrentStatus.DOWNLOADING
    return TorrentStatus.ERROR


def flatten_file_tree(nodes: List[Dict[str, Any]], path_prefix: str = "") -> List[RemoteFile]:
    """Recursively flatten AllDebrid's nested file tree (n=name, s=size, l=link, e=entries)."""
    files = []
    for node in nodes:
        name = node.get('n', '')
        full_path = f"{path_prefix}/{name}" if path_prefix else name
        if 'e' in node:
            files.extend(flatten_file_tree(node['e'], full_path))
        else:
            files.append(RemoteFile(
                file_id=node.get('l') or full_path,
                path=full_path,
                size=int(node.get('s') or 0),
                link=node.get('l') or None,
            ))
    return files


class AllDebridProvider(DebridProvider):
    """AllDebrid implementation of the debrid provider capabilities"""

    name = 'alldebrid'

    async def _request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        return await make_request(self.api, method, endpoint, self.api_key, **kwargs)

    async def submit(self, magnet: str) -> RemoteStatus:
        data = await self._request('POST', '/v4/magnet/upload', data={'magnets[]': magnet})
        magnets = data.get('magnets') or []
        if not magnets:
            raise TorrentAdditionError("AllDebrid returned no magnet")
        entry = magnets[0]
        if 'error' in entry:
            error = entry['error']
            raise TorrentAdditionError(f"{error.get('code')}: {error.get('message')}")

        torrent_id = str(entry.get('id'))
        logging.info(f"Added magnet to AllDebrid as {torrent_id} (ready={entry.get('ready')})")
        if entry.get('ready'):
            return RemoteStatus(torrent_id=torrent_id, status=TorrentStatus.DOWNLOADED, progress=100.0,
                                message='Ready')
        return await self.poll_status(torrent_id)

    async def poll_status(self, torrent_id: str) -> RemoteStatus:
        data = await self._request('GET', '/magnet/status', params={'id': torrent_id})
        magnet = data.get('magnets') or {}
        # v4.1 returns a single object for an id query, older responses a list
        if isinstance(magnet, list):
            magnet = magnet[0] if magnet else {}
        code = magnet.get('statusCode')
        size = magnet.get('size') or 0
        downloaded = magnet.get('downloaded') or 0
        progress = 100.0 * downloaded / size if size else 0.0
        return RemoteStatus(
            torrent_id=torrent_id,
            status=status_from_code(code),
            progress=progress,
            message=MAGNET_STATUS_CODES.get(code, magnet.get('status')),
        )

    async def list_files(self, torrent_id: str) -> List[RemoteFile]:
        data = await self._request('POST', '/magnet/files', data={'id[]': torrent_id})
        magnets = data.get('magnets') or []
        for magnet in magnets:
            if str(magnet.get('id')) == str(torrent_id):
                return flatten_file_tree(magnet.get('files') or [])
        raise AllDebridAPIError(f"No file listing for magnet {torrent_id}")

    async def unlock_file(self, torrent_id: str, file: RemoteFile) -> str:
        if not file.link:
            raise AllDebridAPIError(f"No link for {file.path} in magnet {torrent_id}")
        data = await self._request('GET', '/link/unlock', params={'link': file.link})
        link = data.get('link')
        if not link:
            raise AllDebridAPIError(f"Unlock returned no link for {file.path}")
        return link

    async def remove(self, torrent_id: str) -> bool:
        await self._request('GET', '/magnet/delete', params={'id': torrent_id})
        return True
