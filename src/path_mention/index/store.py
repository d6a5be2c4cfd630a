"""In-memory entry collection with coalesced full refresh and incremental patches."""

from __future__ import annotations

import asyncio
import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from path_mention.index.discovery import SOURCE_NONE
from path_mention.index.entries import ancestor_folders, build_entry, build_folder_entry
from path_mention.index.models import Entry, PathListing
from path_mention.logging import utc_timestamp

PathLister = Callable[[], Awaitable[PathListing]]

MAX_PENDING_WARNINGS = 20


class RefreshState(Enum):
    """Refresh state machine; only the listing await can observe RUNNING states."""

    IDLE = "idle"
    RUNNING = "running"
    RUNNING_WITH_PENDING = "running_with_pending"


@dataclass(slots=True, frozen=True)
class IndexStatus:
    """Current index status snapshot."""

    refresh_state: str
    entry_count: int
    folder_count: int
    last_refresh_timestamp: str | None
    last_refresh_source: str | None
    last_refresh_duration_ms: int | None
    refresh_count: int


class IndexStore:
    """Owns the deduplicated Entry collection for one session."""

    def __init__(self, lister: PathLister, include_folders: bool = True) -> None:
        self._lister = lister
        self._include_folders = include_folders
        self._files: dict[str, Entry] = {}
        self._folders: dict[str, Entry] = {}
        self._folder_file_counts: dict[str, int] = {}
        self._state = RefreshState.IDLE
        self._idle = asyncio.Event()
        self._idle.set()
        self._refresh_count = 0
        self._last_refresh_timestamp: str | None = None
        self._last_refresh_source: str | None = None
        self._last_refresh_duration_ms: int | None = None
        self._warnings: deque[str] = deque(maxlen=MAX_PENDING_WARNINGS)

    @property
    def refresh_state(self) -> RefreshState:
        """Return the current refresh state."""
        return self._state

    @property
    def refresh_count(self) -> int:
        """Return how many listings have completed."""
        return self._refresh_count

    def entries(self) -> list[Entry]:
        """Return file entries in insertion order."""
        return list(self._files.values())

    def folder_entries(self) -> list[Entry]:
        """Return derived folder entries in insertion order."""
        return list(self._folders.values())

    def get(self, path: str) -> Entry | None:
        """Return the file entry for path, if indexed."""
        return self._files.get(path)

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def __len__(self) -> int:
        return len(self._files)

    def drain_warnings(self) -> list[str]:
        """Return and clear warnings collected since the last call, oldest first."""
        warnings = list(self._warnings)
        self._warnings.clear()
        return warnings

    def status(self) -> IndexStatus:
        """Return a status snapshot."""
        return IndexStatus(
            refresh_state=self._state.value,
            entry_count=len(self._files),
            folder_count=len(self._folders),
            last_refresh_timestamp=self._last_refresh_timestamp,
            last_refresh_source=self._last_refresh_source,
            last_refresh_duration_ms=self._last_refresh_duration_ms,
            refresh_count=self._refresh_count,
        )

    async def full_refresh(self) -> bool:
        """Replace the collection from a fresh listing.

        Returns False when the request was coalesced into the refresh already in
        flight; that refresh then runs exactly one more listing after it finishes.
        """
        if self._state is not RefreshState.IDLE:
            self._state = RefreshState.RUNNING_WITH_PENDING
            return False
        self._state = RefreshState.RUNNING
        self._idle.clear()
        try:
            while True:
                await self._run_listing()
                if self._state is not RefreshState.RUNNING_WITH_PENDING:
                    break
                self._state = RefreshState.RUNNING
        finally:
            self._state = RefreshState.IDLE
            self._idle.set()
        return True

    async def wait_until_idle(self) -> None:
        """Wait for the in-flight refresh, including any coalesced follow-up."""
        await self._idle.wait()

    def add_entry(self, path: str) -> bool:
        """Add path if absent; returns True when the collection changed."""
        if path in self._folders:
            return False
        return self._insert(path)

    def remove_entry(self, path: str) -> bool:
        """Remove path; a folder path removes every file beneath it."""
        removed = self._files.pop(path, None) is not None
        if removed:
            self._untrack_folders(path)
        # A path can be both a file entry and a folder when it was created empty.
        if path in self._folders:
            prefix = f"{path}/"
            for file_path in [item for item in self._files if item.startswith(prefix)]:
                del self._files[file_path]
                self._untrack_folders(file_path)
            removed = True
        return removed

    async def _run_listing(self) -> None:
        started = time.perf_counter()
        try:
            listing = await self._lister()
        except Exception as error:
            # Previous collection stays in place.
            self._add_warning(f"Path listing failed: {type(error).__name__}: {error}")
            listing = None
        if listing is not None:
            self._replace(listing.paths)
            for warning in listing.warnings:
                self._add_warning(warning)
            self._last_refresh_source = listing.source
        else:
            self._last_refresh_source = SOURCE_NONE
        self._refresh_count += 1
        self._last_refresh_duration_ms = int((time.perf_counter() - started) * 1000)
        self._last_refresh_timestamp = utc_timestamp()

    def _add_warning(self, warning: str) -> None:
        # Repeated refreshes report the same condition once until drained.
        if warning not in self._warnings:
            self._warnings.append(warning)

    def _replace(self, paths: tuple[str, ...]) -> None:
        self._files = {}
        self._folders = {}
        self._folder_file_counts = {}
        for path in paths:
            self._insert(path)

    def _insert(self, path: str) -> bool:
        if not path or path in self._files:
            return False
        self._files[path] = build_entry(path)
        self._track_folders(path)
        return True

    def _track_folders(self, path: str) -> None:
        if not self._include_folders:
            return
        for folder in ancestor_folders(path):
            count = self._folder_file_counts.get(folder, 0)
            if count == 0:
                self._folders[folder] = build_folder_entry(folder)
            self._folder_file_counts[folder] = count + 1

    def _untrack_folders(self, path: str) -> None:
        if not self._include_folders:
            return
        for folder in ancestor_folders(path):
            count = self._folder_file_counts.get(folder, 0) - 1
            if count > 0:
                self._folder_file_counts[folder] = count
                continue
            self._folder_file_counts.pop(folder, None)
            self._folders.pop(folder, None)
