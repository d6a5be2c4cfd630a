"""Deterministic total ordering of scored entries."""

from __future__ import annotations

from collections.abc import Iterable

from path_mention.index.models import Entry, ScoredEntry
from path_mention.index.scoring import fuzzy_score, query_hints_test

DEFAULT_MAX_ITEMS = 50


def rank_key(candidate: ScoredEntry, lower_query: str) -> tuple[float, bool, int, int, str]:
    """Sort key: score desc, basename prefix first, depth, path length, then path."""
    entry = candidate.entry
    return (
        -candidate.score,
        not entry.basename.startswith(lower_query),
        entry.depth,
        len(entry.lower_path),
        entry.path,
    )


def rank_candidates(
    candidates: Iterable[ScoredEntry],
    lower_query: str,
    max_items: int = DEFAULT_MAX_ITEMS,
) -> list[ScoredEntry]:
    """Fully sort candidates, then truncate to max_items."""
    if max_items < 1:
        return []
    ordered = sorted(candidates, key=lambda candidate: rank_key(candidate, lower_query))
    return ordered[:max_items]


def score_entries(query: str, entries: Iterable[Entry]) -> list[ScoredEntry]:
    """Score every entry against query and keep only matches."""
    lower_query = query.lower()
    hints_test = query_hints_test(lower_query)
    scored: list[ScoredEntry] = []
    for entry in entries:
        score = fuzzy_score(lower_query, entry, hints_test)
        if score is None:
            continue
        scored.append(ScoredEntry(entry=entry, score=score))
    return scored


def rank_query(
    query: str,
    entries: Iterable[Entry],
    max_items: int = DEFAULT_MAX_ITEMS,
) -> list[ScoredEntry]:
    """Score, filter and rank entries for one query."""
    return rank_candidates(score_entries(query, entries), query.lower(), max_items)
