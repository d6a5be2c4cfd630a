"""Most-recently-used tracking and empty-query suggestions."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass

from path_mention.index.models import Entry, ScoredEntry
from path_mention.state import StateStore

MRU_STATE_KEY = "mention.mru"
DEFAULT_CAPACITY = 20
DEFAULT_SUGGESTION_LIMIT = 50

MRU_BASE_SCORE = 100
MRU_RANK_STEP = 3
EXTRA_CANDIDATE_LIMIT = 30
EXTRA_CANDIDATE_FLOOR = 30.0


@dataclass(slots=True, frozen=True)
class MRURecord:
    """One accepted path and when it was accepted (epoch milliseconds)."""

    path: str
    timestamp: int


class MRUTracker:
    """Recency list loaded once per session; the in-memory copy is authoritative."""

    def __init__(
        self,
        storage: StateStore,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self._capacity = capacity
        self._clock = clock
        self._records: list[MRURecord] = []
        self._warnings: list[str] = []

    def load(self) -> None:
        """Load persisted records, skipping malformed rows and duplicates."""
        raw = self._storage.get(MRU_STATE_KEY)
        records: list[MRURecord] = []
        seen: set[str] = set()
        if isinstance(raw, list):
            for item in raw:
                if not isinstance(item, dict):
                    continue
                path = item.get("path")
                timestamp = item.get("timestamp")
                if not isinstance(path, str) or not path or path in seen:
                    continue
                if isinstance(timestamp, bool) or not isinstance(timestamp, int):
                    continue
                seen.add(path)
                records.append(MRURecord(path=path, timestamp=timestamp))
        self._records = records[: self._capacity]

    def records(self) -> list[MRURecord]:
        """Return records, most recent first."""
        return list(self._records)

    def paths(self) -> list[str]:
        """Return recorded paths, most recent first."""
        return [record.path for record in self._records]

    def drain_warnings(self) -> list[str]:
        """Return and clear persistence warnings collected since the last call."""
        warnings = self._warnings
        self._warnings = []
        return warnings

    def record_selection(self, path: str) -> None:
        """Move path to the front, truncate to capacity, persist."""
        record = MRURecord(path=path, timestamp=int(self._clock() * 1000))
        remaining = [item for item in self._records if item.path != path]
        self._records = [record, *remaining][: self._capacity]
        self._persist()

    def default_suggestions(
        self,
        entries: Iterable[Entry],
        max_items: int = DEFAULT_SUGGESTION_LIMIT,
        folders: Iterable[Entry] = (),
    ) -> list[ScoredEntry]:
        """Suggestions for an empty query: recent paths first, then shallow short files.

        Recent paths no longer indexed are skipped. Folders only count when recent.
        """
        by_path = {entry.path: entry for entry in entries}
        recent_lookup = {entry.path: entry for entry in folders}
        recent_lookup.update(by_path)
        recent: list[ScoredEntry] = []
        for record in self._records:
            entry = recent_lookup.get(record.path)
            if entry is None:
                continue
            score = float(MRU_BASE_SCORE - MRU_RANK_STEP * len(recent))
            recent.append(ScoredEntry(entry=entry, score=score))

        recent_paths = {item.entry.path for item in recent}
        extras: list[ScoredEntry] = []
        for path, entry in by_path.items():
            if path in recent_paths:
                continue
            score = baseline_score(entry)
            if score > EXTRA_CANDIDATE_FLOOR:
                extras.append(ScoredEntry(entry=entry, score=score))
        extras.sort(key=lambda item: (-item.score, item.entry.path))

        merged = recent + extras[:EXTRA_CANDIDATE_LIMIT]
        merged.sort(key=lambda item: (-item.score, item.entry.path))
        return merged[:max_items]

    def _persist(self) -> None:
        try:
            self._storage.set(MRU_STATE_KEY, [asdict(record) for record in self._records])
        except OSError as error:
            self._warnings.append(f"Failed to persist recent mentions: {error}")


def baseline_score(entry: Entry) -> float:
    """Empty-query score for a file that was never selected."""
    penalty = 10 if entry.is_test else 0
    return 50 - entry.depth * 2 - len(entry.path) * 0.1 - penalty
