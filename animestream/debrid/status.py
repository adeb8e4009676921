"""Common status flags for debrid providers"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TorrentStatus(Enum):
    QUEUED = 'queued'
    DOWNLOADING = 'downloading'
    DOWNLOADED = 'downloaded'  # Cached
    ERROR = 'error'
    UNKNOWN = 'unknown'


@dataclass
class RemoteStatus:
    """Provider status of one submitted release"""
    torrent_id: str
    status: TorrentStatus
    progress: float = 0.0
    message: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.status == TorrentStatus.DOWNLOADED

    @property
    def is_error(self) -> bool:
        return self.status == TorrentStatus.ERROR
