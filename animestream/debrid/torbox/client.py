import logging
from typing import Any, Dict, List

from animestream.models import RemoteFile
from ..base import DebridProvider, TorrentAdditionError
from ..status import RemoteStatus, TorrentStatus
from .api import make_request
from .exceptions import TorBoxAPIError

ERROR_STATES = {'error', 'failed', 'stalled (no seeds)', 'missingfiles'}
QUEUED_STATES = {'queued', 'metadl', 'checkingresumedata', 'paused'}


class TorBoxProvider(DebridProvider):
    """TorBox implementation of the debrid provider capabilities"""

    name = 'torbox'

    async def _request(self, method: str, endpoint: str, **kwargs) -> Any:
        return await make_request(self.api, method, endpoint, self.api_key, **kwargs)

    async def get_torrent(self, torrent_id: str) -> Dict[str, Any]:
        data = await self._request('GET', '/torrents/mylist', params={'id': torrent_id, 'bypass_cache': 'true'})
        if isinstance(data, list):
            data = next((t for t in data if str(t.get('id')) == str(torrent_id)), None)
        if not data:
            raise TorBoxAPIError(f"Torrent {torrent_id} not found")
        return data

    def _to_status(self, torrent_id: str, torrent: Dict[str, Any]) -> RemoteStatus:
        state = (torrent.get('download_state') or '').lower()
        if torrent.get('download_present') or (torrent.get('download_finished') and state not in ERROR_STATES):
            status = TorrentStatus.DOWNLOADED
        elif state in ERROR_STATES:
            status = TorrentStatus.ERROR
        elif state in QUEUED_STATES:
            status = TorrentStatus.QUEUED
        elif state:
            status = TorrentStatus.DOWNLOADING
        else:
            status = TorrentStatus.UNKNOWN
        progress = float(torrent.get('progress') or 0)
        if progress <= 1:
            progress *= 100
        return RemoteStatus(torrent_id=torrent_id, status=status, progress=progress, message=state)

    async def submit(self, magnet: str) -> RemoteStatus:
        data = await self._request('POST', '/torrents/createtorrent', data={'magnet': magnet, 'seed': '3'})
        torrent_id = data.get('torrent_id') if isinstance(data, dict) else None
        if not torrent_id:
            raise TorrentAdditionError("TorBox did not return a torrent id")
        torrent_id = str(torrent_id)
        logging.info(f"Added magnet to TorBox as {torrent_id}")
        return await self.poll_status(torrent_id)

    async def poll_status(self, torrent_id: str) -> RemoteStatus:
        return self._to_status(torrent_id, await self.get_torrent(torrent_id))

    async def list_files(self, torrent_id: str) -> List[RemoteFile]:
        torrent = await self.get_torrent(torrent_id)
        return [
            RemoteFile(
                file_id=str(f.get('id')),
                path=f.get('name') or f.get('short_name') or '',
                size=int(f.get('size') or 0),
            )
            for f in torrent.get('files') or []
        ]

    async def unlock_file(self, torrent_id: str, file: RemoteFile) -> str:
        url = await self._request('GET', '/torrents/requestdl', params={
            'token': self.api_key,
            'torrent_id': torrent_id,
            'file_id': file.file_id,
        })
        if not url or not isinstance(url, str):
            raise TorBoxAPIError(f"requestdl returned no URL for {file.path}")
        return url

    async def remove(self, torrent_id: str) -> bool:
        await self._request('POST', '/torrents/controltorrent',
                            data={'torrent_id': torrent_id, 'operation': 'delete'})
        return True
