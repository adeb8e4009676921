"""
Utilities for handling anime-specific numbering and title aliases.
"""
import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

# Common English titles mapped to the romaji titles release groups use.
TITLE_ALIASES: Dict[str, List[str]] = {
    'my hero academia': ['Boku no Hero Academia'],
    'attack on titan': ['Shingeki no Kyojin'],
    'demon slayer': ['Kimetsu no Yaiba'],
    'jujutsu kaisen': ['Jujutsu Kaisen'],
    'solo leveling': ['Ore dake Level Up na Ken', 'Solo Leveling'],
    'frieren': ['Sousou no Frieren'],
    "frieren: beyond journey's end": ['Sousou no Frieren'],
    'the apothecary diaries': ['Kusuriya no Hitorigoto'],
    'dark moon: kuro no tsuki - tsuki no saidan': ['Dark Moon: Tsuki no Saidan', 'Dark Moon: The Blood Altar'],
    'dark moon: kuro no tsuki': ['Dark Moon: Tsuki no Saidan', 'Dark Moon: The Blood Altar'],
    'monogatari series: off & monster season': ['Monogatari Series: Off & Monster Season', 'Monogatari Off Monster'],
}

# Catalog seasons of long-running shows, keyed by IMDb id.
# Each entry lists (first, last) absolute episode per catalog season, season 1 first.
ABSOLUTE_EPISODE_MAPPINGS: Dict[str, List[Tuple[int, int]]] = {
    # One Piece
    'tt0388629': [
        (1, 8), (9, 30), (31, 47), (48, 60), (61, 69), (70, 91), (92, 130), (131, 143),
        (144, 195), (196, 226), (227, 325), (326, 381), (382, 481), (482, 516), (517, 578),
        (579, 627), (628, 745), (746, 778), (779, 877), (878, 891), (892, 1085), (1086, 1155),
        (1156, 9999),
    ],
    # Dragon Ball Z
    'tt0214341': [
        (1, 39), (40, 74), (75, 107), (108, 139), (140, 165), (166, 194), (195, 219),
        (220, 253), (254, 291),
    ],
    # Naruto
    'tt0409591': [(1, 35), (36, 83), (84, 131), (132, 179), (180, 220)],
    # Naruto Shippuden
    'tt0988824': [
        (1, 32), (33, 53), (54, 71), (72, 88), (89, 112), (113, 143), (144, 151), (152, 175),
        (176, 196), (197, 222), (223, 242), (243, 260), (261, 295), (296, 320), (321, 348),
        (349, 361), (362, 393), (394, 413), (414, 431), (432, 450), (451, 458), (459, 500),
    ],
    # Bleach, Thousand-Year Blood War continues as season 17+
    'tt0434665': [
        (1, 20), (21, 41), (42, 63), (64, 91), (92, 109), (110, 131), (132, 151), (152, 167),
        (168, 189), (190, 205), (206, 212), (213, 229), (230, 265), (266, 316), (317, 342),
        (343, 366), (367, 390), (391, 9999),
    ],
    # Fairy Tail
    'tt1528406': [(1, 48), (49, 96), (97, 150), (151, 175), (176, 226), (227, 265), (266, 277), (278, 328)],
    # Hunter x Hunter (2011)
    'tt2098220': [(1, 58), (59, 136), (137, 148)],
    # Dragon Ball Super
    'tt4644488': [(1, 14), (15, 27), (28, 46), (47, 76), (77, 131)],
    # Detective Conan, continuous numbering
    'tt0131179': [(1, 999999)],
    # Boruto
    'tt6342474': [(1, 293)],
}


def base_imdb_id(external_id: Optional[str]) -> Optional[str]:
    """'tt0388629:21:5' -> 'tt0388629'; non-IMDb ids return None."""
    if not external_id:
        return None
    head = external_id.split(':', 1)[0]
    return head if head.startswith('tt') else None


def has_absolute_mapping(external_id: Optional[str]) -> bool:
    return base_imdb_id(external_id) in ABSOLUTE_EPISODE_MAPPINGS


def convert_to_absolute_episode(external_id: Optional[str], season: int, episode: int) -> int:
    """
    Map a catalog (season, episode) onto the show's continuous numbering.

    Unmapped shows and seasons return the episode unchanged. The result is
    capped at the last episode of the season.
    """
    seasons = ABSOLUTE_EPISODE_MAPPINGS.get(base_imdb_id(external_id))
    if not seasons or season is None or season < 1 or season > len(seasons):
        return episode

    start, end = seasons[season - 1]
    absolute = min(start + episode - 1, end)
    logging.debug(f"Absolute episode for {external_id} S{season}E{episode}: {absolute}")
    return absolute


def _alias_key(name: str) -> str:
    return ' '.join(re.sub(r'[^\w\s]', ' ', name.lower()).split())


_ALIASES_BY_KEY: Dict[str, List[str]] = {_alias_key(k): v for k, v in TITLE_ALIASES.items()}


def aliases_for(name: str) -> List[str]:
    """Aliases registered for this exact title, compared without case or punctuation."""
    key = _alias_key(name)
    if not key:
        return []
    return list(_ALIASES_BY_KEY.get(key, []))


def expand_alternate_names(name: str, alternate_names: Iterable[str]) -> List[str]:
    """
    Merge known aliases into the alternate names.

    Case-insensitive, order-preserving, and never repeats the primary name.
    """
    seen = {name.lower().strip()}
    merged: List[str] = []
    for candidate in list(alternate_names) + aliases_for(name):
        if not candidate:
            continue
        key = candidate.lower().strip()
        if key in seen:
            continue
        seen.add(key)
        merged.append(candidate.strip())
    return merged
