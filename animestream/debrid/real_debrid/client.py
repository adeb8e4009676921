import logging
from typing import Any, Dict, List

from animestream.models import RemoteFile
from ..base import DebridProvider, TorrentAdditionError
from ..common.utils import is_video_file, is_unwanted_file
from ..status import RemoteStatus, TorrentStatus
from .api import make_request
from .exceptions import RealDebridAPIError

STATUS_MAP = {
    'magnet_conversion': TorrentStatus.QUEUED,
    'waiting_files_selection': TorrentStatus.QUEUED,
    'queued': TorrentStatus.QUEUED,
    'downloading': TorrentStatus.DOWNLOADING,
    'compressing': TorrentStatus.DOWNLOADING,
    'uploading': TorrentStatus.DOWNLOADING,
    'downloaded': TorrentStatus.DOWNLOADED,
    'magnet_error': TorrentStatus.ERROR,
    'error': TorrentStatus.ERROR,
    'virus': TorrentStatus.ERROR,
    'dead': TorrentStatus.ERROR,
}


class RealDebridProvider(DebridProvider):
    """Real-Debrid implementation of the debrid provider capabilities"""

    name = 'realdebrid'

    async def _request(self, method: str, endpoint: str, **kwargs) -> Any:
        return await make_request(self.api, method, endpoint, self.api_key, **kwargs)

    async def get_torrent_info(self, torrent_id: str) -> Dict[str, Any]:
        info = await self._request('GET', f'/torrents/info/{torrent_id}')
        if not isinstance(info, dict) or not info:
            raise RealDebridAPIError(f"Empty torrent info for {torrent_id}")
        return info

    def _to_status(self, torrent_id: str, info: Dict[str, Any]) -> RemoteStatus:
        raw_status = info.get('status', '')
        status = STATUS_MAP.get(raw_status, TorrentStatus.UNKNOWN)
        return RemoteStatus(
            torrent_id=torrent_id,
            status=status,
            progress=float(info.get('progress') or 0),
            message=raw_status,
        )

    async def _select_video_files(self, torrent_id: str, info: Dict[str, Any]):
        files = info.get('files', [])
        video_file_ids = [
            str(f['id']) for f in files
            if is_video_file(f.get('path', '')) and not is_unwanted_file(f.get('path', ''))
        ]
        selection = ','.join(video_file_ids) if video_file_ids else 'all'
        await self._request('POST', f'/torrents/selectFiles/{torrent_id}', data={'files': selection})
        logging.info(f"Selected files for {torrent_id}: {selection}")

    async def submit(self, magnet: str) -> RemoteStatus:
        result = await self._request('POST', '/torrents/addMagnet', data={'magnet': magnet})
        torrent_id = result.get('id') if isinstance(result, dict) else None
        if not torrent_id:
            raise TorrentAdditionError("Real-Debrid did not return a torrent id")
        logging.info(f"Added magnet to Real-Debrid as {torrent_id}")

        info = await self.get_torrent_info(torrent_id)
        if info.get('status') == 'waiting_files_selection':
            await self._select_video_files(torrent_id, info)
            info = await self.get_torrent_info(torrent_id)

        status = self._to_status(torrent_id, info)
        if status.is_error:
            logging.error(f"Magnet error detected: {info.get('filename')}")
        return status

    async def poll_status(self, torrent_id: str) -> RemoteStatus:
        info = await self.get_torrent_info(torrent_id)
        return self._to_status(torrent_id, info)

    async def list_files(self, torrent_id: str) -> List[RemoteFile]:
        info = await self.get_torrent_info(torrent_id)
        links = list(info.get('links') or [])
        files = []
        # Links are listed in the order of the selected files.
        for file_info in info.get('files', []):
            selected = bool(file_info.get('selected'))
            link = links.pop(0) if selected and links else None
            if not selected:
                continue
            files.append(RemoteFile(
                file_id=str(file_info.get('id')),
                path=file_info.get('path', '').lstrip('/'),
                size=int(file_info.get('bytes') or 0),
                link=link,
            ))
        return files

    async def unlock_file(self, torrent_id: str, file: RemoteFile) -> str:
        if not file.link:
            raise RealDebridAPIError(f"No link for {file.path} in torrent {torrent_id}")
        result = await self._request('POST', '/unrestrict/link', data={'link': file.link})
        download = result.get('download') if isinstance(result, dict) else None
        if not download:
            raise RealDebridAPIError(f"Unrestrict returned no download URL for {file.path}")
        return download

    async def remove(self, torrent_id: str) -> bool:
        await self._request('DELETE', f'/torrents/delete/{torrent_id}')
        return True
