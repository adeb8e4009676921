"""
Release-title classification.

Turns a free-text release title into an EpisodeInfo. Each stage is an ordered
table of (name, pattern, extractor) rules evaluated by a small engine: the
first rule whose extractor returns a value wins. Numeric captures are guarded
against years and resolution/aspect literals so they are never taken as
episode numbers.
"""
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, FrozenSet, Iterable, List, Optional, Tuple

from animestream.models import ContentType, EpisodeInfo
from animestream.utilities.settings import get_setting, get_int_setting
from animestream.utilities.settings_schema import DEFAULT_EXCLUDED_EPISODE_NUMBERS

_I = re.IGNORECASE

VIDEO_EXTENSION_PATTERN = re.compile(r'\.(?:mkv|mp4|avi|m4v|mov|wmv|webm|ts|m2ts|flv|mpe?g)$', _I)

# Technical tokens removed before any numeric parsing.
_TECH_TOKENS = [
    re.compile(r'\b\d{3,4}[pi]\b', _I),
    re.compile(r'\b\d{3,4}x\d{3,4}\b', _I),
    re.compile(r'\b[xh]\.?26[456]\b', _I),
    re.compile(r'\b(?:hevc|avc|av1|xvid|divx|hi10p?)\b', _I),
    re.compile(r'\b(?:8|10|12)[- ]?bits?\b', _I),
    re.compile(r'\b(?:e-?ac-?3|ac-?3|aac|ddp?|dts(?:-hd)?|flac|opus|truehd|atmos|mp3)(?:\s?\d\.\d)?\b', _I),
    re.compile(r'\b\d\.\d\b'),
    re.compile(r'\b(?:4k|uhd|hdr10\+?|hdr|dv)\b', _I),
    re.compile(r'\[[0-9A-F]{8}\]'),
]

_ROMAN = {'I': 1, 'II': 2, 'III': 3, 'IV': 4, 'V': 5, 'VI': 6, 'VII': 7, 'VIII': 8, 'IX': 9, 'X': 10}
_ORDINAL_WORDS = {
    'first': 1, 'second': 2, 'third': 3, 'fourth': 4, 'fifth': 5,
    'sixth': 6, 'seventh': 7, 'eighth': 8, 'ninth': 9, 'tenth': 10,
}
_RANGE_JOIN = r'(?:-|~|to)'


def strip_extension(title: str) -> str:
    return VIDEO_EXTENSION_PATTERN.sub('', title.strip())


def clean_title(title: str) -> str:
    """Strip the extension and technical tokens, keeping layout otherwise intact."""
    cleaned = strip_extension(title)
    for pattern in _TECH_TOKENS:
        cleaned = pattern.sub(' ', cleaned)
    return cleaned


def is_year(number: int) -> bool:
    return 1900 <= number <= 2100


@dataclass(frozen=True)
class Rule:
    name: str
    pattern: 're.Pattern'
    extract: Callable[['re.Match'], Optional[object]]


def first_match(rules: Iterable[Rule], text: str) -> Tuple[Optional[str], Optional[object]]:
    """Run rules in order; every match of a rule is tried before moving on."""
    for rule in rules:
        for match in rule.pattern.finditer(text):
            value = rule.extract(match)
            if value is not None:
                return rule.name, value
    return None, None


# Preview markers. Any match short-circuits classification.
PREVIEW_PATTERNS = [
    re.compile(r'\bpreviews?\b', _I),
    re.compile(r'\btrailers?\b', _I),
    re.compile(r'\bteasers?\b', _I),
    re.compile(r'\bPV\s?\d{1,2}\b'),
    re.compile(r'\bCM\s?\d{1,2}\b'),
    re.compile(r'\bNC\s?(?:OP|ED)\d*\b'),
    re.compile(r'\bcreditless\b', _I),
    re.compile(r'\bnon-?credit\b', _I),
    re.compile(r'\bclean\s+(?:opening|ending)\b', _I),
    re.compile(r'予告'),
]

MOVIE_PATTERNS = [
    re.compile(r'\bmovies?\b', _I),
    re.compile(r'\bfilm\b', _I),
    re.compile(r'\bgekijou?ban\b', _I),
    re.compile(r'劇場版'),
    # Well-known theatrical titles that carry no movie vocabulary
    re.compile(r'\bmugen\s+(?:ressha|train)\b', _I),
    re.compile(r'\bsuzume\s+no\s+tojimari\b', _I),
    re.compile(r'\bkimi\s+no\s+na\s+wa\b', _I),
    re.compile(r'\bstampede\b', _I),
]

SPECIAL_PATTERNS = [
    re.compile(r'\b(?:OVA|ONA|OAV|OAD)s?\b', _I),
    re.compile(r'\bspecials?\b', _I),
    re.compile(r'\bSP\s?\d{1,2}\b'),
    re.compile(r'\bextras\b', _I),
]

BATCH_VOCABULARY = re.compile(r'\b(?:complete|batch|box\s*set|collection)\b|全集', _I)

DASH_EPISODE_PATTERN = re.compile(r'\s[-–]\s+(\d{1,4})(?:v\d)?(?=$|\s|[\[(._])', _I)

# Per-episode markers checked when a season token was found but no episode number was.
EPISODE_MARKERS = [
    re.compile(r'\b(?:episode|ep)\b', _I),
    re.compile(r'\s-\s'),
    re.compile(r'#\d'),
    re.compile(r'[話话集]'),
]


class TitleClassifier:
    def __init__(self, excluded_numbers: Optional[Iterable[int]] = None, max_batch_span: int = 200):
        if excluded_numbers is None:
            excluded_numbers = DEFAULT_EXCLUDED_EPISODE_NUMBERS
        self.excluded_numbers: FrozenSet[int] = frozenset(int(n) for n in excluded_numbers)
        self.max_batch_span = max_batch_span
        self.season_rules = self._build_season_rules()
        self.multi_season_rules = self._build_multi_season_rules()
        self.batch_range_rules = self._build_batch_range_rules()
        self.season_episode_rules = self._build_season_episode_rules()
        self.absolute_episode_rules = self._build_absolute_episode_rules()

    # -- numeric guards ---------------------------------------------------

    def is_excluded(self, number: int) -> bool:
        return number in self.excluded_numbers or is_year(number)

    def episode_number(self, text: Optional[str]) -> Optional[int]:
        if text is None:
            return None
        number = int(text)
        if self.is_excluded(number):
            return None
        return number

    def valid_range(self, start: int, end: int) -> Optional[Tuple[int, int]]:
        if start >= end:
            return None
        count = end - start + 1
        if count < 2 or count > self.max_batch_span:
            return None
        if start in self.excluded_numbers or end in self.excluded_numbers:
            return None
        if is_year(start) and is_year(end):
            return None
        return start, end

    # -- rule tables --------------------------------------------------------

    def _build_season_rules(self) -> List[Rule]:
        def number(group=1):
            def extract(m):
                value = int(m.group(group))
                return value if 0 < value < 100 else None
            return extract

        roman_values = r'(X|IX|IV|V?I{1,3}|V)'
        return [
            Rule('season_word', re.compile(r'\bseason\s*(\d{1,2})\b', _I), number()),
            Rule('season_cjk', re.compile(r'第\s*(\d{1,2})\s*[期季]'), number()),
            Rule('season_localized', re.compile(r'\b(?:saison|temporada|staffel|stagione)\s*(\d{1,2})\b', _I), number()),
            Rule('season_s_prefix', re.compile(r'(?<![A-Za-z0-9])S(\d{1,2})(?![Ee]\d|\d)', _I), number()),
            Rule('season_ordinal', re.compile(r'\b(\d{1,2})(?:st|nd|rd|th)\s+(?:season|part|cour)\b', _I), number()),
            Rule('season_ordinal_word',
                 re.compile(r'\b(' + '|'.join(_ORDINAL_WORDS) + r')\s+(?:season|part|cour)\b', _I),
                 lambda m: _ORDINAL_WORDS[m.group(1).lower()]),
            Rule('season_roman_qualified', re.compile(r'\b(?:season|part|cour)\s+' + roman_values + r'\b', _I),
                 lambda m: _ROMAN[m.group(1).upper()]),
            # Bare numerals only from II upward; I, V and X are too common as letters.
            Rule('season_roman_bare', re.compile(r'(?<![A-Za-z\'])(VIII|VII|III|IX|IV|VI|II)(?![A-Za-z\'])'),
                 lambda m: _ROMAN[m.group(1)]),
        ]

    def _build_multi_season_rules(self) -> List[Rule]:
        def pair(m):
            first, second = int(m.group(1)), int(m.group(2))
            return (first, second) if first < second else None

        joiner = r'\s*(?:-|~|\+|&|to|and)\s*'
        return [
            Rule('s_prefix_pair',
                 re.compile(r'(?<![A-Za-z0-9])S(\d{1,2})' + joiner + r'S(\d{1,2})(?![Ee]\d|\d)', _I), pair),
            # Unspaced only: "S01 - 02" is season 1 episode 2.
            Rule('s_prefix_short_pair', re.compile(r'(?<![A-Za-z0-9])S(\d{1,2})[-~](\d{1,2})(?![\w.])', _I), pair),
            Rule('season_dashed_pair', re.compile(r'\bseasons?\s*(\d{1,2})[-~](\d{1,2})(?![\w.])', _I), pair),
            Rule('seasons_plural', re.compile(r'\bseasons\s*(\d{1,2})' + joiner + r'(?:season\s*)?(\d{1,2})\b', _I), pair),
            Rule('season_joined',
                 re.compile(r'\bseason\s*(\d{1,2})\s*(?:\+|&|~|and|to)\s*(?:season\s*)?(\d{1,2})\b', _I), pair),
            Rule('season_dash_season', re.compile(r'\bseason\s*(\d{1,2})\s*-\s*season\s*(\d{1,2})\b', _I), pair),
        ]

    def _build_batch_range_rules(self) -> List[Rule]:
        def ranged(start_group, end_group, season_group=None):
            def extract(m):
                bounds = self.valid_range(int(m.group(start_group)), int(m.group(end_group)))
                if bounds is None:
                    return None
                season = int(m.group(season_group)) if season_group else None
                return season, bounds
            return extract

        return [
            Rule('season_episode_range',
                 re.compile(r'\bS(\d{1,2})\s*E(\d{1,4})\s*' + _RANGE_JOIN + r'\s*(?:S\d{1,2})?E?(\d{1,4})\b', _I),
                 ranged(2, 3, 1)),
            Rule('episode_word_range',
                 re.compile(r'(?<![A-Za-z0-9])(?:E|Eps?\.?|Episodes?)\s*(\d{1,4})\s*' + _RANGE_JOIN
                            + r'\s*(?:E|Eps?\.?)?\s*(\d{1,4})\b', _I),
                 ranged(1, 2)),
            Rule('bracketed_range', re.compile(r'[\[(]\s*(\d{1,4})\s*[-~]\s*(\d{1,4})\s*[\])]'), ranged(1, 2)),
            # Bare ranges: no whitespace around a dash, any around a tilde.
            Rule('dashed_range', re.compile(r'(?<![\w.])(\d{1,4})(?:-|\s*~\s*)(\d{1,4})(?![\w.])'), ranged(1, 2)),
        ]

    def _build_season_episode_rules(self) -> List[Rule]:
        def season_episode(m):
            episode = self.episode_number(m.group(2))
            if episode is None:
                return None
            return int(m.group(1)), episode

        return [
            Rule('sxe', re.compile(r'(?<![A-Za-z0-9])S(\d{1,2})\s*E(\d{1,4})(?:v\d)?(?!\d)', _I), season_episode),
            Rule('s_dash_episode', re.compile(r'(?<![A-Za-z0-9])S(\d{1,2})\s+-\s+(\d{1,4})(?:v\d)?(?!\d)', _I),
                 season_episode),
            Rule('nxnn', re.compile(r'(?<![\dA-Za-z])(\d{1,2})x(\d{2,3})(?![\dA-Za-z])', _I), season_episode),
            Rule('season_word_episode',
                 re.compile(r'\bseason\s*(\d{1,2})\s*(?:-\s*)?(?:episode|ep\.?)\s*(\d{1,4})(?!\d)', _I), season_episode),
            Rule('season_word_dash', re.compile(r'\bseason\s*(\d{1,2})\s+-\s+(\d{1,4})(?:v\d)?(?!\d)', _I),
                 season_episode),
        ]

    def _build_absolute_episode_rules(self) -> List[Rule]:
        def episode(m):
            return self.episode_number(m.group(1))

        return [
            Rule('dash_number', DASH_EPISODE_PATTERN, episode),
            Rule('episode_word', re.compile(r'\b(?:episode|ep)\.?\s*(\d{1,4})(?:v\d)?(?!\d)', _I), episode),
            Rule('cjk_episode', re.compile(r'第\s*(\d{1,4})\s*[話话集]'), episode),
            Rule('cjk_episode_suffix', re.compile(r'(?<!\d)(\d{1,4})\s*[話话]'), episode),
            Rule('bracketed_number', re.compile(r'[\[(]\s*(\d{1,4})(?:v\d)?\s*[\])]', _I), episode),
            Rule('delimited_number', re.compile(r'(?<![\dhHxX])[._](\d{1,4})(?:v\d)?[._](?!\d)', _I), episode),
            Rule('e_prefix', re.compile(r'(?<![A-Za-z0-9])E(\d{1,4})(?:v\d)?(?!\d)', _I), episode),
        ]

    # -- stages ----------------------------------------------------------------

    def extract_season(self, text: str) -> Optional[int]:
        _, season = first_match(self.season_rules, text)
        return season

    def _trailing_number(self, text: str) -> Optional[int]:
        unbracketed = re.sub(r'\[[^\]]*\]|\([^)]*\)|\{[^}]*\}', ' ', text)
        match = re.search(r'(?<![\w.])(\d{1,4})(?:v\d)?[\s._-]*$', unbracketed, _I)
        if not match:
            return None
        return self.episode_number(match.group(1))

    def extract_episode(self, text: str) -> Tuple[Optional[int], Optional[int]]:
        """Return (season, episode); season is set only by a season-qualified form."""
        _, pair = first_match(self.season_episode_rules, text)
        if pair is not None:
            return pair
        _, episode = first_match(self.absolute_episode_rules, text)
        if episode is None:
            episode = self._trailing_number(text)
        return None, episode

    def classify(self, title: str) -> EpisodeInfo:
        if not title or not title.strip():
            return EpisodeInfo()

        raw = strip_extension(title)

        if any(p.search(raw) for p in PREVIEW_PATTERNS):
            return EpisodeInfo(content_type=ContentType.PREVIEW)

        text = clean_title(title)

        if any(p.search(raw) for p in MOVIE_PATTERNS):
            return self._classify_movie(text)

        if any(p.search(raw) for p in SPECIAL_PATTERNS):
            return self._classify_special(text)

        season = self.extract_season(text)

        _, seasons = first_match(self.multi_season_rules, text)
        if seasons is not None:
            return EpisodeInfo(content_type=ContentType.BATCH, is_batch=True, is_multi_season=True)

        range_rule, ranged = first_match(self.batch_range_rules, text)
        if range_rule == 'dashed_range' and DASH_EPISODE_PATTERN.search(text):
            # "Show 2-5 Title - 03": the bare range is part of the name.
            ranged = None
        if ranged is not None:
            range_season, bounds = ranged
            return EpisodeInfo(content_type=ContentType.BATCH, is_batch=True,
                               season=range_season if range_season is not None else season,
                               batch_range=bounds)

        if BATCH_VOCABULARY.search(text):
            return EpisodeInfo(content_type=ContentType.BATCH, is_batch=True, season=season)

        episode_season, episode = self.extract_episode(text)
        if episode_season is not None:
            season = episode_season

        if episode is None:
            if season is not None and not any(p.search(text) for p in EPISODE_MARKERS):
                return EpisodeInfo(content_type=ContentType.BATCH, is_batch=True, season=season)
            # A season with an unnumbered episode (sub-title only) stays unresolved.
            return EpisodeInfo(season=season)

        return EpisodeInfo(
            content_type=ContentType.EPISODE,
            season=season,
            episode=episode,
            is_absolute=season is None,
        )

    def _classify_movie(self, text: str) -> EpisodeInfo:
        movie_number = None
        match = re.search(r'\b(?:movie|film)\s*[-#]?\s*(\d{1,2})(?!\d)', text, _I)
        if match:
            movie_number = int(match.group(1))
        year = None
        for m in re.finditer(r'(?<!\d)((?:19|20)\d{2})(?!\d)', text):
            candidate = int(m.group(1))
            if candidate not in self.excluded_numbers and is_year(candidate):
                year = candidate
                break
        return EpisodeInfo(content_type=ContentType.MOVIE, movie_number=movie_number, year=year)

    def _classify_special(self, text: str) -> EpisodeInfo:
        special_number = None
        for pattern in (
            re.compile(r'\b(?:OVA|ONA|OAV|OAD)s?\s*[-_#]?\s*(\d{1,3})(?!\d)', _I),
            re.compile(r'\bspecials?\s*[-_#]?\s*(\d{1,3})(?!\d)', _I),
            re.compile(r'\bSP\s?(\d{1,2})\b'),
        ):
            match = pattern.search(text)
            if match:
                special_number = self.episode_number(match.group(1))
                if special_number is not None:
                    break
        season = self.extract_season(text)
        return EpisodeInfo(content_type=ContentType.SPECIAL, special_number=special_number, season=season)


@lru_cache(maxsize=1)
def get_default_classifier() -> TitleClassifier:
    excluded = get_setting('Parsing', 'excluded_episode_numbers')
    if not isinstance(excluded, (list, tuple)):
        logging.warning(f"Parsing.excluded_episode_numbers is not a list ({excluded!r}). Using defaults.")
        excluded = DEFAULT_EXCLUDED_EPISODE_NUMBERS
    return TitleClassifier(excluded, get_int_setting('Parsing', 'max_batch_span'))


@lru_cache(maxsize=4096)
def classify(title: str) -> EpisodeInfo:
    """Classify a release title with the configured classifier."""
    return get_default_classifier().classify(title)


def reset_classifier_cache():
    get_default_classifier.cache_clear()
    classify.cache_clear()
