"""Session lifecycle: owns the index, the recency list and event routing."""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from functools import partial

from path_mention.completion import CompletionList, CompletionSession
from path_mention.config import MentionConfig
from path_mention.index.discovery import data_dir_prefix, list_workspace_paths
from path_mention.index.paths import is_inside, normalize_event_path
from path_mention.index.store import IndexStore, PathLister, RefreshState
from path_mention.mru import MRUTracker
from path_mention.state import STATE_FILE_NAME, JsonStateStore, StateStore


class MentionService:
    """One instance per editor session; built at start and discarded at close."""

    def __init__(
        self,
        config: MentionConfig,
        lister: PathLister | None = None,
        storage: StateStore | None = None,
    ) -> None:
        self._config = config
        self._store = IndexStore(
            lister=lister or partial(list_workspace_paths, config),
            include_folders=config.index.include_folders,
        )
        self._mru = MRUTracker(
            storage=storage or JsonStateStore(config.data_dir / STATE_FILE_NAME),
            capacity=config.completion.mru_capacity,
        )
        self._session = CompletionSession(
            store=self._store,
            mru=self._mru,
            config=config.completion,
            index_available=config.has_workspace or bool(config.index.allowlist_folders),
            include_folders=config.index.include_folders,
        )
        self._ignored_prefix = (
            data_dir_prefix(config.workspace_root, config.data_dir)
            if config.workspace_root is not None
            else None
        )
        self._debounce_handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[bool]] = set()

    @property
    def store(self) -> IndexStore:
        """Return the owned index store."""
        return self._store

    @property
    def mru(self) -> MRUTracker:
        """Return the owned recency tracker."""
        return self._mru

    async def start(self, wait: bool = False) -> None:
        """Load the recency list and kick off the initial refresh."""
        self._mru.load()
        task = self._spawn_refresh()
        if wait:
            await task

    async def close(self) -> None:
        """Drop any debounced refresh and let in-flight refreshes finish."""
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        if self._tasks:
            await asyncio.gather(*self._tasks)

    async def refresh(self, wait: bool = False) -> dict[str, object]:
        """Schedule a full refresh; with wait, return only once the index settles.

        Without wait the request loop keeps answering completions against the
        current collection while the listing runs.
        """
        coalesced = self._store.refresh_state is not RefreshState.IDLE
        task = self._spawn_refresh()
        if wait:
            await task
            await self._store.wait_until_idle()
        else:
            # Let the task start so the reported state includes it.
            await asyncio.sleep(0)
        result = self.status()
        result["coalesced"] = coalesced
        result["__warnings__"] = self.drain_warnings()
        return result

    def status(self) -> dict[str, object]:
        """Return index status plus recency list size."""
        payload: dict[str, object] = asdict(self._store.status())
        payload["mru_count"] = len(self._mru.records())
        return payload

    def complete(self, text: str, cursor: int | None = None) -> CompletionList:
        """Answer one completion request, carrying any background refresh warnings."""
        completions = self._session.complete(text, cursor)
        completions.warnings.extend(self.drain_warnings())
        return completions

    def drain_warnings(self) -> list[str]:
        """Return warnings left behind by background refreshes since the last call."""
        return self._store.drain_warnings()

    def select(self, path: str) -> list[str]:
        """Acknowledge an accepted suggestion."""
        return self._session.acknowledge_selection(path)

    def file_created(self, raw_path: str) -> bool:
        """Apply a file-created event; returns True when the index changed."""
        path = self._event_path(raw_path)
        return path is not None and self._store.add_entry(path)

    def file_deleted(self, raw_path: str) -> bool:
        """Apply a file-deleted event; returns True when the index changed."""
        path = self._event_path(raw_path)
        return path is not None and self._store.remove_entry(path)

    def folders_changed(self) -> None:
        """Debounce workspace-folder notifications into a single refresh."""
        loop = asyncio.get_running_loop()
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        self._debounce_handle = loop.call_later(
            self._config.refresh_debounce_ms / 1000, self._debounced_refresh
        )

    def _debounced_refresh(self) -> None:
        self._debounce_handle = None
        self._spawn_refresh()

    def _spawn_refresh(self) -> asyncio.Task[bool]:
        task = asyncio.get_running_loop().create_task(self._store.full_refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _event_path(self, raw_path: str) -> str | None:
        path = normalize_event_path(self._config.workspace_root, raw_path)
        if path is None or is_inside(path, self._ignored_prefix):
            return None
        return path
