import re
from typing import Iterable, Optional
from urllib.parse import quote

# Common video file extensions
VIDEO_EXTENSIONS = [
    'mp4', 'mkv', 'avi', 'mov', 'wmv', 'flv', 'm4v', 'webm', 'mpg', 'mpeg', 'm2ts', 'ts'
]

DEFAULT_TRACKERS = [
    'http://nyaa.tracker.wf:7777/announce',
    'udp://open.stealth.si:80/announce',
    'udp://tracker.opentrackr.org:1337/announce',
    'udp://exodus.desync.com:6969/announce',
]

def is_video_file(filename: str) -> bool:
    """Check if a file is a video file based on its extension"""
    return any(filename.lower().endswith(f'.{ext}') for ext in VIDEO_EXTENSIONS)

def is_unwanted_file(filename: str) -> bool:
    """Check if a file is unwanted (e.g., sample files)"""
    return bool(re.search(r'(?<![a-z])sample(?![a-z])', filename.lower()))

def extract_hash_from_magnet(magnet_link: str) -> str:
    """Extract the 40-hex info hash from a magnet link."""
    if not magnet_link or not magnet_link.startswith('magnet:'):
        raise ValueError("Invalid magnet link format")
    hash_match = re.search(r'btih:([a-fA-F0-9]{40})(?![a-fA-F0-9])', magnet_link)
    if not hash_match:
        raise ValueError("Could not find valid hash in magnet link")
    return hash_match.group(1).lower()

def is_valid_hash(hash_string: Optional[str]) -> bool:
    """Check if a string is a valid hash"""
    return bool(hash_string) and bool(re.match(r'^[a-fA-F0-9]{40}$', hash_string))

def build_magnet(info_hash: str, name: str = '', trackers: Optional[Iterable[str]] = None) -> str:
    magnet = f"magnet:?xt=urn:btih:{info_hash.lower()}"
    if name:
        magnet += f"&dn={quote(name)}"
    for tracker in (DEFAULT_TRACKERS if trackers is None else trackers):
        magnet += f"&tr={quote(tracker, safe='')}"
    return magnet
