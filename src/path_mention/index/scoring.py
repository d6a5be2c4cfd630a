"""Multi-factor fuzzy scoring of one entry against one query.

The weights below are empirically tuned against the worked ranking matrix in
``tests/unit/scoring/test_ranking_matrix.py``; change them only together with it.
"""

from __future__ import annotations

import re
from typing import Final

from path_mention.index.models import Entry

MATCH_BONUS: Final = 1
CONTIGUOUS_BONUS: Final = 3
BOUNDARY_BONUS: Final = 5
BASENAME_BONUS: Final = 2

SEGMENT_EQUALS_BONUS: Final = 15
BASENAME_PREFIX_BONUS: Final = 12
STEM_EQUALS_BONUS: Final = 10
STEM_SUFFIX_BONUS: Final = 7

TOKEN_MATCH_BONUS: Final = 4
UNMATCHED_TOKEN_PENALTY: Final = 8
ROOT_INTENT_PENALTY: Final = 4
EXTRA_SPAN_PENALTY: Final = 2

DEPTH_PENALTY_FACTOR: Final = 0.5
DEPTH_PENALTY_CAP: Final = 3.0
LENGTH_PENALTY_FACTOR: Final = 0.02
LENGTH_PENALTY_CAP: Final = 2.0
TEST_PENALTY: Final = 5

BOUNDARY_CHARS: Final = frozenset("/_")
TOKEN_SPLIT_PATTERN: Final[re.Pattern[str]] = re.compile(r"[/\-_]")
TEST_INTENT_PATTERN: Final[re.Pattern[str]] = re.compile(r"test|spec|__tests__")


def query_hints_test(lower_query: str) -> bool:
    """Return True when the query itself asks for test/spec files."""
    return TEST_INTENT_PATTERN.search(lower_query) is not None


def fuzzy_score(lower_query: str, entry: Entry, hints_test: bool = False) -> float | None:
    """Score entry against an already-lowercased query, or None when it does not match."""
    if not lower_query:
        return None
    best = _best_anchor_score(lower_query, entry.lower_path, entry.basename_start)
    if best is None:
        return None

    score = float(best)
    score += _post_match_bonus(lower_query, entry)
    score += _token_structure_score(lower_query, entry.segments)
    score -= min(entry.depth * DEPTH_PENALTY_FACTOR, DEPTH_PENALTY_CAP)
    score -= min(len(entry.lower_path) * LENGTH_PENALTY_FACTOR, LENGTH_PENALTY_CAP)
    if entry.is_test and not hints_test:
        score -= TEST_PENALTY
    return score


def _best_anchor_score(lower_query: str, lower_path: str, basename_start: int) -> int | None:
    # Every occurrence of the first char is a candidate anchor.
    first_char = lower_query[0]
    best: int | None = None
    start = lower_path.find(first_char)
    while start != -1:
        score = _score_from_anchor(lower_query, lower_path, basename_start, start)
        if score is not None and (best is None or score > best):
            best = score
        start = lower_path.find(first_char, start + 1)
    return best


def _score_from_anchor(
    lower_query: str,
    lower_path: str,
    basename_start: int,
    start: int,
) -> int | None:
    query_index = 0
    query_length = len(lower_query)
    previous_match: int | None = None
    score = 0
    for index in range(start, len(lower_path)):
        if query_index >= query_length:
            break
        if lower_path[index] != lower_query[query_index]:
            continue
        if previous_match is not None and previous_match == index - 1:
            score += CONTIGUOUS_BONUS
        if index == 0 or lower_path[index - 1] in BOUNDARY_CHARS:
            score += BOUNDARY_BONUS
        if index >= basename_start:
            score += BASENAME_BONUS
        score += MATCH_BONUS
        previous_match = index
        query_index += 1
    if query_index < query_length:
        return None
    return score


def _post_match_bonus(lower_query: str, entry: Entry) -> int:
    bonus = 0
    if lower_query in entry.segments:
        bonus += SEGMENT_EQUALS_BONUS
    if entry.basename.startswith(lower_query):
        bonus += BASENAME_PREFIX_BONUS
    if entry.stem == lower_query:
        bonus += STEM_EQUALS_BONUS
    elif entry.stem.endswith(lower_query):
        bonus += STEM_SUFFIX_BONUS
    return bonus


def _token_structure_score(lower_query: str, segments: tuple[str, ...]) -> float:
    tokens = [token for token in TOKEN_SPLIT_PATTERN.split(lower_query) if token]
    if len(tokens) < 2:
        return 0.0

    matched_indexes: list[int] = []
    unmatched = 0
    cursor = 0
    for token in tokens:
        found = _first_segment_with_prefix(segments, token, cursor)
        if found is None:
            # An unmatched token leaves later segments available to later tokens.
            unmatched += 1
            continue
        matched_indexes.append(found)
        cursor = found + 1

    score = 0.0
    matched = len(matched_indexes)
    if matched > 1:
        score += TOKEN_MATCH_BONUS * matched
    score -= UNMATCHED_TOKEN_PENALTY * unmatched
    if matched_indexes:
        first, last = matched_indexes[0], matched_indexes[-1]
        score -= ROOT_INTENT_PENALTY * first
        extra_span = (last - first) - (matched - 1)
        score -= EXTRA_SPAN_PENALTY * extra_span
    return score


def _first_segment_with_prefix(segments: tuple[str, ...], token: str, start: int) -> int | None:
    for index in range(start, len(segments)):
        if segments[index].startswith(token):
            return index
    return None
