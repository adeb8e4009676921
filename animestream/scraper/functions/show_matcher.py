"""
Show identity scoring for release titles.

A release title is reduced to its bare show name, normalized, and compared
against the expected name and its alternates. Trailing words that name a
different but related show (sequels, spin-offs) veto an otherwise good
containment match.
"""
import logging
import re
import unicodedata
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence, Tuple

from fuzzywuzzy import fuzz

from animestream.models import MatchReason, ShowMatchResult
from animestream.scraper.functions.title_classifier import strip_extension

SPINOFF_INDICATORS = [
    'shippuden', 'shippuuden', 'kai', 'brotherhood', 'gaiden', 'vigilantes',
    'next generations', 'next generation', 'boruto',
    'alternative', 'side story', 'spin off', 'spinoff', 'chibi', 'petit', 'origins',
    'the movie', 'movie', 'film', 'recap', 'picture drama',
]
_SPINOFF_PATTERN = re.compile(
    r'^(?:' + '|'.join(re.escape(s) for s in sorted(SPINOFF_INDICATORS, key=len, reverse=True)) + r')\b'
)

# Suffixes too common to veto on their own; they mark a sequel only after these names.
FRANCHISE_SPINOFF_INDICATORS = {
    'dragon ball': ['z', 'gt', 'super', 'daima'],
}
_FRANCHISE_PATTERNS = {
    name: re.compile(r'^(?:' + '|'.join(re.escape(s) for s in suffixes) + r')\b')
    for name, suffixes in FRANCHISE_SPINOFF_INDICATORS.items()
}

_LEADING_GROUP = re.compile(r'^\s*[\[(【][^\])】]*[\])】]\s*')
_BRACKETED = re.compile(r'\[[^\]]*\]|\([^)]*\)|\{[^}]*\}|【[^】]*】')

# The bare name ends at the first of these markers.
_NAME_STOP_MARKERS = [
    re.compile(r'\s[-–~|]\s*\d'),
    re.compile(r'(?<![A-Za-z0-9])S\d{1,2}(?:\s*E\d{1,4})?(?![A-Za-z0-9])', re.IGNORECASE),
    re.compile(r'(?<![A-Za-z0-9])E(?:p(?:isode)?)?\.?\s*\d{1,4}(?![A-Za-z0-9])', re.IGNORECASE),
    re.compile(r'\b\d{1,2}(?:st|nd|rd|th)\s+(?:season|part|cour)\b', re.IGNORECASE),
    re.compile(r'\b(?:season|seasons|cour)\b', re.IGNORECASE),
    re.compile(r'\b\d{1,2}x\d{2,3}\b', re.IGNORECASE),
    re.compile(r'\b\d{3,4}[pi]\b', re.IGNORECASE),
    re.compile(r'\b(?:[xh]\.?26[45]|hevc|avc|av1|10\s?bit|8\s?bit|aac|flac|opus|ddp?\d?)\b', re.IGNORECASE),
    re.compile(r'\b(?:bd|bdrip|bluray|blu-ray|web|web-?dl|webrip|hdtv|dual audio|multi-?subs?)\b', re.IGNORECASE),
    re.compile(r'\b(?:batch|complete|uncensored)\b', re.IGNORECASE),
    re.compile(r'第\s*\d'),
    re.compile(r'\s\d{1,4}(?:v\d)?\s*$'),
]

_ARTICLES = {'the', 'a', 'an'}
_SEASON_SUFFIX = re.compile(
    r'\s+(?:season\s*\d+|\d+(?:st|nd|rd|th)\s+(?:season|part|cour)|s\d{1,2}|part\s*\d+|cour\s*\d+'
    r'|final\s+season|ii|iii|iv|vi|vii|viii|ix)$'
)


def extract_show_name(title: str) -> str:
    """Reduce a release title to the show name it advertises."""
    name = strip_extension(title or '')
    name = _LEADING_GROUP.sub('', name)
    name = _BRACKETED.sub(' ', name)
    name = name.replace('_', ' ')
    if ' ' not in name.strip():
        name = name.replace('.', ' ')

    cut = len(name)
    for marker in _NAME_STOP_MARKERS:
        match = marker.search(name)
        if match and match.start() < cut:
            cut = match.start()
    name = name[:cut]
    return re.sub(r'\s+', ' ', name).strip(' -–:|~.,')


@lru_cache(maxsize=4096)
def normalize_name(name: str) -> str:
    """Casefold, drop punctuation, articles and season suffixes."""
    normalized = unicodedata.normalize('NFKD', name or '')
    normalized = ''.join(c for c in normalized if not unicodedata.combining(c))
    normalized = normalized.casefold().replace('&', ' and ')
    normalized = re.sub(r"['’`]", '', normalized)
    normalized = re.sub(r'[^\w\s]|_', ' ', normalized)
    words = [w for w in normalized.split() if w not in _ARTICLES]
    normalized = ' '.join(words)
    previous = None
    while previous != normalized:
        previous = normalized
        normalized = _SEASON_SUFFIX.sub('', normalized).strip()
    return normalized


def short_form(name: str) -> str:
    """Part of a title before its colon subtitle, normalized."""
    if ':' not in name:
        return ''
    return normalize_name(name.split(':', 1)[0])


def significant_words(name: str) -> List[str]:
    return [w for w in name.split() if len(w) > 2]


def is_spinoff_suffix(name: str, trailing: str) -> bool:
    if _SPINOFF_PATTERN.match(trailing):
        return True
    franchise = _FRANCHISE_PATTERNS.get(name)
    return franchise is not None and franchise.match(trailing) is not None


def _score_against(bare: str, name: str, short: str) -> Tuple[int, MatchReason]:
    if bare == name:
        return 100, MatchReason.EXACT_MATCH

    match = re.search(r'(?<!\w)' + re.escape(name) + r'(?!\w)', bare)
    if match:
        trailing = bare[match.end():].strip()
        if not trailing:
            return 98, MatchReason.CONTAINS_EXACT_END
        if is_spinoff_suffix(name, trailing):
            return 20, MatchReason.SPINOFF_DETECTED
        return max(25, round(85 * (1 - len(trailing) / len(bare)))), MatchReason.CONTAINS_WITH_EXTRA

    if short and bare == short:
        return 85, MatchReason.SHORTENED_TITLE

    similarity = fuzz.ratio(bare, name)
    if similarity >= 85:
        return min(95, similarity), MatchReason.HIGH_SIMILARITY
    if similarity >= 60:
        return int(similarity * 0.9), MatchReason.FUZZY_MATCH

    name_words = significant_words(name)
    if name_words:
        bare_words = set(bare.split())
        overlap = sum(1 for w in name_words if w in bare_words)
        if overlap:
            return min(70, int(overlap / len(name_words) * 70)), MatchReason.WORD_MATCH

    return 0, MatchReason.NO_MATCH


def score(title: str, expected_name: str, alternate_names: Optional[Iterable[str]] = None) -> ShowMatchResult:
    extracted = extract_show_name(title)
    bare = normalize_name(extracted)
    if not bare:
        return ShowMatchResult(0, MatchReason.EMPTY_EXTRACTION, extracted)

    accepted = [expected_name] + [n for n in (alternate_names or []) if n]
    results = []
    for original in accepted:
        name = normalize_name(original)
        if not name:
            continue
        results.append(_score_against(bare, name, short_form(original)))

    if not results:
        return ShowMatchResult(0, MatchReason.NO_MATCH, extracted)

    strong = [r for r in results if r[1] in (MatchReason.EXACT_MATCH, MatchReason.CONTAINS_EXACT_END)]
    if strong:
        best = max(strong, key=lambda r: r[0])
    else:
        spinoff = [r for r in results if r[1] == MatchReason.SPINOFF_DETECTED]
        best = spinoff[0] if spinoff else max(results, key=lambda r: r[0])

    return ShowMatchResult(best[0], best[1], extracted)


def validate(title: str, expected_name: str, alternate_names: Optional[Sequence[str]] = None,
             threshold: int = 60, id_check_failed: bool = False, strict_threshold: int = 75) -> bool:
    """Whether a title belongs to the expected show.

    A failed id cross-check raises the threshold; a detected spin-off is
    rejected whatever the threshold.
    """
    result = score(title, expected_name, alternate_names)
    effective = max(threshold, strict_threshold) if id_check_failed else threshold
    if result.is_spinoff:
        logging.debug(f"Spin-off rejected: '{title}' vs '{expected_name}' (extracted '{result.extracted_name}')")
        return False
    accepted = result.score >= effective
    if not accepted:
        logging.debug(f"Identity rejected: '{title}' scored {result.score} ({result.reason.value}) < {effective}")
    return accepted
