"""Typed models for the mention index."""

from __future__ import annotations

from dataclasses import dataclass

ENTRY_KIND_FILE = "file"
ENTRY_KIND_FOLDER = "folder"


@dataclass(slots=True, frozen=True)
class Entry:
    """Indexed path plus fields derived from it once at build time."""

    path: str
    lower_path: str
    segments: tuple[str, ...]
    basename: str
    stem: str
    depth: int
    is_test: bool
    kind: str = ENTRY_KIND_FILE

    @property
    def basename_start(self) -> int:
        """Offset of the basename inside lower_path."""
        return len(self.lower_path) - len(self.basename)


@dataclass(slots=True, frozen=True)
class ScoredEntry:
    """One fuzzy match awaiting ranking."""

    entry: Entry
    score: float


@dataclass(slots=True, frozen=True)
class PathListing:
    """Result of one enumeration pass."""

    paths: tuple[str, ...]
    source: str
    warnings: tuple[str, ...] = ()
