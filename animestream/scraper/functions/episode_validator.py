import logging
from typing import Iterable, List, Optional

from animestream.models import ContentType, EpisodeInfo, EpisodeMatch, ShowRequest, TorrentCandidate
from animestream.scraper.functions.title_classifier import classify
from animestream.scraper.functions import show_matcher

# Reason codes
PREVIEW = 'preview'
MOVIE_MATCH = 'movie_match'
MOVIE_NUMBER_MISMATCH = 'movie_number_mismatch'
NOT_A_MOVIE = 'not_a_movie'
SPECIAL_MATCH = 'special_match'
SPECIAL_NUMBER_MISMATCH = 'special_number_mismatch'
NOT_A_SPECIAL = 'not_a_special'
CONTENT_TYPE_MISMATCH = 'content_type_mismatch'
MULTI_SEASON_BATCH = 'multi_season_batch'
SEASON_MISMATCH = 'season_mismatch'
BATCH_IN_RANGE = 'batch_in_range'
BATCH_OUT_OF_RANGE = 'batch_out_of_range'
BATCH_UNKNOWN_RANGE = 'batch_unknown_range'
NO_EPISODE = 'no_episode'
EPISODE_MISMATCH = 'episode_mismatch'
EXACT_MATCH = 'exact_match'
IDENTITY_MISMATCH = 'identity_mismatch'


def validate_episode(title: str, requested_episode: Optional[int], requested_season: Optional[int] = None,
                     content_type_hint: Optional[ContentType] = None,
                     absolute_episode: Optional[int] = None,
                     info: Optional[EpisodeInfo] = None) -> EpisodeMatch:
    """
    Decide whether a release title carries the requested episode.

    absolute_episode, when given, is also accepted for season-less
    (absolute-numbered) titles and inside batch ranges.
    """
    if info is None:
        info = classify(title)

    def result(matches: bool, reason: str) -> EpisodeMatch:
        return EpisodeMatch(matches=matches, reason=reason, info=info)

    if info.content_type == ContentType.PREVIEW:
        return result(False, PREVIEW)

    if content_type_hint == ContentType.MOVIE:
        if info.content_type != ContentType.MOVIE:
            return result(False, NOT_A_MOVIE)
        if info.movie_number is not None and requested_episode is not None \
                and info.movie_number != requested_episode:
            return result(False, MOVIE_NUMBER_MISMATCH)
        return result(True, MOVIE_MATCH)

    if requested_season == 0 or content_type_hint == ContentType.SPECIAL:
        if info.content_type == ContentType.SPECIAL:
            if info.special_number is not None and requested_episode is not None \
                    and info.special_number != requested_episode:
                return result(False, SPECIAL_NUMBER_MISMATCH)
            return result(True, SPECIAL_MATCH)
        if info.season == 0 and info.episode is not None:
            if info.episode == requested_episode:
                return result(True, EXACT_MATCH)
            return result(False, EPISODE_MISMATCH)
        return result(False, NOT_A_SPECIAL)

    if info.content_type in (ContentType.MOVIE, ContentType.SPECIAL):
        return result(False, CONTENT_TYPE_MISMATCH)

    if info.is_batch:
        if info.is_multi_season:
            return result(False, MULTI_SEASON_BATCH)
        if info.season is not None and requested_season is not None and info.season != requested_season:
            return result(False, SEASON_MISMATCH)
        if info.batch_range is not None:
            start, end = info.batch_range
            wanted = [e for e in (requested_episode, absolute_episode) if e is not None]
            if any(start <= e <= end for e in wanted):
                return result(True, BATCH_IN_RANGE)
            return result(False, BATCH_OUT_OF_RANGE)
        return result(True, BATCH_UNKNOWN_RANGE)

    if info.episode is None:
        return result(False, NO_EPISODE)

    if info.season is not None and requested_season is not None and info.season != requested_season:
        return result(False, SEASON_MISMATCH)

    if info.episode == requested_episode:
        return result(True, EXACT_MATCH)
    if info.is_absolute and absolute_episode is not None and info.episode == absolute_episode:
        return result(True, EXACT_MATCH)
    return result(False, EPISODE_MISMATCH)


def filter_torrents_by_episode(candidates: Iterable[TorrentCandidate], show: ShowRequest,
                               season: Optional[int], episode: Optional[int],
                               threshold: int = 60, id_check_failed: bool = False,
                               strict_threshold: int = 75,
                               content_type_hint: Optional[ContentType] = None,
                               absolute_episode: Optional[int] = None) -> List[TorrentCandidate]:
    """
    Keep candidates that belong to the show and carry the episode.

    Candidates found by external id skip the identity check; everything else
    must pass it before episode validation is attempted.
    """
    accepted: List[TorrentCandidate] = []
    for candidate in candidates:
        if not candidate.from_id_lookup:
            if not show_matcher.validate(candidate.title, show.name, show.alternate_names,
                                         threshold=threshold, id_check_failed=id_check_failed,
                                         strict_threshold=strict_threshold):
                logging.debug(f"Rejected [{candidate.provider}] {candidate.title}: {IDENTITY_MISMATCH}")
                continue

        match = validate_episode(candidate.title, episode, season, content_type_hint, absolute_episode)
        if not match.matches:
            logging.debug(f"Rejected [{candidate.provider}] {candidate.title}: {match.reason}")
            continue
        accepted.append(candidate.with_match(match))

    logging.info(f"Episode filter kept {len(accepted)} candidates for {show.name} S{season}E{episode}")
    return accepted
