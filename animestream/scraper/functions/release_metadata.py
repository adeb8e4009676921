"""
Release metadata derived from a title: quality tier, source, raw flag, group.

Regex tables run first; PTT fills in whatever they leave unknown.
"""
import logging
import re
from functools import lru_cache
from typing import Any, Dict, Optional, Union

from PTT import parse_title

from animestream.models import Quality, SourceType

QUALITY_PATTERNS = [
    (re.compile(r'\b(?:2160p|4k|uhd)\b', re.IGNORECASE), Quality.UHD_4K),
    (re.compile(r'\b1080[pi]\b|\b1920x1080\b', re.IGNORECASE), Quality.FHD_1080P),
    (re.compile(r'\b720p\b|\b1280x720\b', re.IGNORECASE), Quality.HD_720P),
    (re.compile(r'\b(?:480p|576p|360p)\b|\b(?:640|848|854)x480\b', re.IGNORECASE), Quality.SD_480P),
]

SOURCE_PATTERNS = [
    (re.compile(r'\b(?:bd|bdrip|bdremux|blu-?ray|bdmv)\b', re.IGNORECASE), SourceType.BD),
    (re.compile(r'\bweb-?dl\b|\b(?:cr|amzn|nf|dsnp|hidive|adn)\s+web\b', re.IGNORECASE), SourceType.WEB_DL),
    (re.compile(r'\bweb-?rip\b|\bweb\b', re.IGNORECASE), SourceType.WEBRIP),
    (re.compile(r'\b(?:hdtv|tvrip|tv)\b', re.IGNORECASE), SourceType.TV),
]

RAW_PATTERN = re.compile(r'\b(?:raw|raws|no\s*subs?|nosubs?|unsubbed)\b', re.IGNORECASE)
# "Erai-raws" and similar are subbing groups, not raws.
_SUBBED_RAWS_GROUPS = re.compile(r'\berai-raws\b', re.IGNORECASE)
LEADING_GROUP_PATTERN = re.compile(r'^\s*\[([^\]]+)\]')
TRAILING_GROUP_PATTERN = re.compile(r'-([A-Za-z0-9]+)(?:\.[a-z0-9]{2,4})?$')

_PTT_QUALITY = {
    '2160p': Quality.UHD_4K, '4k': Quality.UHD_4K,
    '1080p': Quality.FHD_1080P, '1080i': Quality.FHD_1080P,
    '720p': Quality.HD_720P,
    '576p': Quality.SD_480P, '480p': Quality.SD_480P, '360p': Quality.SD_480P,
}

_PTT_SOURCE = {
    'bluray': SourceType.BD, 'bdrip': SourceType.BD, 'brrip': SourceType.BD, 'bluray remux': SourceType.BD,
    'web-dl': SourceType.WEB_DL, 'web': SourceType.WEB_DL,
    'webrip': SourceType.WEBRIP, 'webmux': SourceType.WEBRIP,
    'hdtv': SourceType.TV, 'hdtvrip': SourceType.TV, 'tvrip': SourceType.TV, 'pdtv': SourceType.TV,
}


@lru_cache(maxsize=1024)
def parse_with_ptt(title: str) -> Dict[str, Any]:
    """Parse a title using PTT with caching."""
    try:
        result = parse_title(title)
        logging.debug(f"PTT parsed '{title}' into: {result}")
        return result
    except Exception as e:
        logging.error(f"Error parsing title with PTT: {str(e)}")
        return {}


def detect_quality(title: str) -> Quality:
    for pattern, quality in QUALITY_PATTERNS:
        if pattern.search(title):
            return quality
    resolution = str(parse_with_ptt(title).get('resolution') or '').lower()
    return _PTT_QUALITY.get(resolution, Quality.UNKNOWN)


def detect_source(title: str) -> SourceType:
    for pattern, source in SOURCE_PATTERNS:
        if pattern.search(title):
            return source
    quality = str(parse_with_ptt(title).get('quality') or '').lower()
    return _PTT_SOURCE.get(quality, SourceType.UNKNOWN)


def is_raw_release(title: str) -> bool:
    stripped = _SUBBED_RAWS_GROUPS.sub(' ', title)
    return bool(RAW_PATTERN.search(stripped))


def detect_release_group(title: str) -> str:
    match = LEADING_GROUP_PATTERN.match(title)
    if match:
        return match.group(1).strip()
    group = parse_with_ptt(title).get('group')
    if group:
        return str(group)
    match = TRAILING_GROUP_PATTERN.search(title.strip())
    if match and not match.group(1).isdigit():
        return match.group(1)
    return ''


def convert_size_to_gb(size: Union[str, int, float, None]) -> float:
    """'1.4 GiB' -> 1.4, '700 MB' -> 0.68, bytes -> GB"""
    if size is None:
        return 0.0
    if isinstance(size, (int, float)):
        return float(size) / (1024 ** 3)
    match = re.search(r'([\d.,]+)\s*([KMGT]i?B)', size, re.IGNORECASE)
    if not match:
        return 0.0
    value = float(match.group(1).replace(',', ''))
    unit = match.group(2).upper().replace('I', '')
    factors = {'KB': 1 / (1024 ** 2), 'MB': 1 / 1024, 'GB': 1, 'TB': 1024}
    return value * factors.get(unit, 0)


def format_size_label(size_bytes: Optional[Union[int, float]]) -> str:
    if not size_bytes or size_bytes <= 0:
        return ''
    size = float(size_bytes)
    for unit in ('B', 'KB', 'MB', 'GB'):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == 'B' else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"
