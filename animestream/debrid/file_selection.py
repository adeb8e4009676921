"""Picking the requested episode out of a multi-file release"""

import logging
import re
from typing import Iterable, List, Optional, Sequence

from animestream.models import FileSelection, RemoteFile
from animestream.scraper.functions.anime_utils import aliases_for
from animestream.scraper.functions.show_matcher import normalize_name, significant_words
from animestream.scraper.functions.title_classifier import classify, strip_extension
from .common.utils import is_video_file, is_unwanted_file

NON_EPISODE_PATTERNS = [
    re.compile(r'\bNC\s?(?:OP|ED)\d*\b', re.IGNORECASE),
    re.compile(r'\bcreditless\b|\bnon-?credit\b|\bclean\s+(?:opening|ending)\b', re.IGNORECASE),
    re.compile(r'\b(?:preview|trailer|teaser|menu|bonus|extra|featurette)s?\b', re.IGNORECASE),
    re.compile(r'\b(?:PV|CM|OP|ED)\s?\d{0,2}\b'),
]

MIN_WORD_OVERLAP = 0.3


def is_non_episode_file(path: str) -> bool:
    return any(p.search(path) for p in NON_EPISODE_PATTERNS)


def select_episode_file(files: Sequence[RemoteFile], season: Optional[int], episode: int,
                        absolute_episode: Optional[int] = None) -> Optional[FileSelection]:
    """
    Choose the file carrying the episode; the largest wins among matches.

    With no match the largest video is returned flagged as a fallback.
    Returns None when the release holds no playable video.
    """
    videos = [f for f in files if is_video_file(f.filename) and not is_unwanted_file(f.filename)]
    if not videos:
        return None

    eligible = [f for f in videos if not is_non_episode_file(f.path)]
    matches = []
    for f in eligible:
        info = classify(f.filename)
        if info.episode is None:
            continue
        if info.episode == episode:
            if info.season is not None and season is not None and info.season != season:
                continue
            matches.append((f, info))
        elif absolute_episode is not None and info.is_absolute and info.episode == absolute_episode:
            matches.append((f, info))

    if matches:
        chosen, info = max(matches, key=lambda pair: pair[0].size)
        logging.debug(f"Selected {chosen.filename} out of {len(matches)} matching files")
        return FileSelection(file=chosen, is_fallback=False, info=info)

    chosen = max(eligible or videos, key=lambda f: f.size)
    logging.warning(f"No file matched S{season}E{episode}; falling back to largest video {chosen.filename}")
    return FileSelection(file=chosen, is_fallback=True)


def filename_matches_show(path: str, expected_name: str, alternate_names: Iterable[str] = ()) -> bool:
    """
    Loose check that a file belongs to the expected show.

    Passes if any accepted name, condensed to letters and digits, occurs in
    the condensed path, or if enough of its significant words occur in it.
    """
    names: List[str] = [n for n in [expected_name, *alternate_names, *aliases_for(expected_name)] if n]
    if not names:
        return True
    # short form before a colon subtitle
    names += [n.split(':', 1)[0] for n in names if ':' in n]

    condensed_path = re.sub(r'[^a-z0-9]', '', path.lower())
    path_words = set(normalize_name(strip_extension(path).replace('/', ' ')).split())

    for name in names:
        condensed = re.sub(r'[^a-z0-9]', '', name.lower())
        if condensed and condensed in condensed_path:
            return True
        words = significant_words(normalize_name(name))
        if not words:
            continue
        overlap = sum(1 for w in words if w in path_words)
        if overlap / len(words) >= MIN_WORD_OVERLAP:
            return True
    return False
