"""Value types shared by the classifier, the acquisition pipeline and the debrid resolver"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, Union


class ContentType(Enum):
    EPISODE = 'episode'
    MOVIE = 'movie'
    SPECIAL = 'special'
    PREVIEW = 'preview'
    BATCH = 'batch'


class Quality(Enum):
    UHD_4K = '4K'
    FHD_1080P = '1080p'
    HD_720P = '720p'
    SD_480P = '480p'
    UNKNOWN = 'Unknown'

    @property
    def rank(self) -> int:
        """Higher is better; used for candidate ordering"""
        return _QUALITY_RANK[self]


_QUALITY_RANK = {
    Quality.UHD_4K: 4,
    Quality.FHD_1080P: 3,
    Quality.HD_720P: 2,
    Quality.SD_480P: 1,
    Quality.UNKNOWN: 0,
}


class SourceType(Enum):
    BD = 'BD'
    WEB_DL = 'WEB-DL'
    WEBRIP = 'WEBRip'
    TV = 'TV'
    UNKNOWN = 'Unknown'


class MatchReason(Enum):
    EXACT_MATCH = 'exact_match'
    CONTAINS_EXACT_END = 'contains_exact_end'
    SPINOFF_DETECTED = 'spinoff_detected'
    CONTAINS_WITH_EXTRA = 'contains_with_extra'
    SHORTENED_TITLE = 'shortened_title'
    HIGH_SIMILARITY = 'high_similarity'
    FUZZY_MATCH = 'fuzzy_match'
    WORD_MATCH = 'word_match'
    NO_MATCH = 'no_match'
    EMPTY_EXTRACTION = 'empty_extraction'


@dataclass(frozen=True)
class EpisodeInfo:
    content_type: Optional[ContentType] = None
    season: Optional[int] = None
    episode: Optional[int] = None
    is_batch: bool = False
    batch_range: Optional[Tuple[int, int]] = None
    is_absolute: bool = False
    is_multi_season: bool = False
    movie_number: Optional[int] = None
    special_number: Optional[int] = None
    year: Optional[int] = None


@dataclass(frozen=True)
class ShowMatchResult:
    score: int
    reason: MatchReason
    extracted_name: str

    @property
    def is_spinoff(self) -> bool:
        return self.reason == MatchReason.SPINOFF_DETECTED


@dataclass(frozen=True)
class ShowRequest:
    """Show identity carried by a stream request"""
    name: str
    external_id: Optional[str] = None
    alternate_names: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EpisodeMatch:
    """Outcome of episode validation for one title"""
    matches: bool
    reason: str
    info: EpisodeInfo


@dataclass(frozen=True)
class TorrentCandidate:
    title: str
    content_hash: str
    magnet: str
    quality: Quality = Quality.UNKNOWN
    source_type: SourceType = SourceType.UNKNOWN
    is_raw_no_subtitles: bool = False
    release_group: str = ''
    seeders: int = 0
    size_label: str = ''
    provider: str = ''
    published_at: Optional[datetime] = None
    matched_episode_info: Optional[EpisodeInfo] = None
    acceptance_reason: Optional[str] = None
    from_id_lookup: bool = False

    def with_match(self, match: EpisodeMatch) -> 'TorrentCandidate':
        return replace(self, matched_episode_info=match.info, acceptance_reason=match.reason)


# Resolution outcomes. Callers dispatch on the concrete type.

@dataclass(frozen=True)
class Ready:
    direct_url: str
    filename: str = ''
    is_fallback: bool = False


@dataclass(frozen=True)
class Pending:
    message: str


@dataclass(frozen=True)
class Mislabeled:
    expected_name: str
    actual_filename: str


@dataclass(frozen=True)
class Error:
    message: str


DebridResolutionOutcome = Union[Ready, Pending, Mislabeled, Error]


@dataclass
class RemoteFile:
    """A file inside a release as reported by a debrid provider"""
    file_id: str
    path: str
    size: int = 0
    link: Optional[str] = None

    @property
    def filename(self) -> str:
        return self.path.replace('\\', '/').rsplit('/', 1)[-1]


@dataclass
class FileSelection:
    file: RemoteFile
    is_fallback: bool = False
    info: Optional[EpisodeInfo] = None
