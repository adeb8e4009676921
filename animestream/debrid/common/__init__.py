from .utils import (
    is_video_file,
    is_unwanted_file,
    extract_hash_from_magnet,
    is_valid_hash,
    build_magnet,
    VIDEO_EXTENSIONS,
)
from .api import make_request, raise_for_status, should_retry_error

__all__ = [
    'is_video_file',
    'is_unwanted_file',
    'extract_hash_from_magnet',
    'is_valid_hash',
    'build_magnet',
    'VIDEO_EXTENSIONS',
    'make_request',
    'raise_for_status',
    'should_retry_error',
]
