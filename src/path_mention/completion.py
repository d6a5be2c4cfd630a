"""Per-keystroke completion: trigger detection, query routing and item shaping."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from path_mention.config import CompletionConfig
from path_mention.index.models import ENTRY_KIND_FOLDER, ScoredEntry
from path_mention.index.ranking import rank_query
from path_mention.index.store import IndexStore
from path_mention.mru import MRUTracker

SELECT_COMMAND = "mention.select"
KIND_HINT = "hint"

FILE_DETAIL = "file mention"
FOLDER_DETAIL = "folder mention"
RECENT_DETAIL = "recent mention"
NO_INDEX_HINT = (
    "No workspace open: set mention.allowlist_folders in path_mention.toml "
    "to mention files from other folders"
)


@dataclass(slots=True, frozen=True)
class MentionContext:
    """Mention token found immediately before the cursor."""

    query: str
    typed_text: str
    replace_start: int


@dataclass(slots=True, frozen=True)
class CompletionItem:
    """One suggestion in host-neutral form."""

    display_path: str
    insert_text: str
    detail: str
    sort_rank: str
    kind: str
    filter_text: str
    replace_start: int
    selectable: bool = True
    accept_command: str | None = None
    score: float | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize for the wire protocol."""
        return {
            "display_path": self.display_path,
            "insert_text": self.insert_text,
            "detail": self.detail,
            "sort_rank": self.sort_rank,
            "kind": self.kind,
            "filter_text": self.filter_text,
            "replace_start": self.replace_start,
            "selectable": self.selectable,
            "accept_command": self.accept_command,
            "score": self.score,
        }


@dataclass(slots=True)
class CompletionList:
    """Ordered items; always incomplete so the host re-queries on every keystroke."""

    items: list[CompletionItem] = field(default_factory=list)
    is_incomplete: bool = True
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        """Serialize for the wire protocol."""
        return {
            "items": [item.to_dict() for item in self.items],
            "is_incomplete": self.is_incomplete,
        }


class TriggerMatcher:
    """Compiled once per configuration; matches a mention token ending at the cursor."""

    def __init__(self, trigger_character: str) -> None:
        escaped = re.escape(trigger_character)
        self._trigger_character = trigger_character
        self._pattern = re.compile(rf"{escaped}([^\s{escaped}]*)$")

    @property
    def trigger_character(self) -> str:
        """Return the configured trigger character."""
        return self._trigger_character

    def match(self, text_before_cursor: str) -> MentionContext | None:
        """Return the mention token before the cursor, if any."""
        found = self._pattern.search(text_before_cursor)
        if found is None:
            return None
        typed_text = found.group(0)
        return MentionContext(
            query=found.group(1),
            typed_text=typed_text,
            replace_start=len(text_before_cursor) - len(typed_text),
        )


class CompletionSession:
    """Answers completion requests against the live index and recency list."""

    def __init__(
        self,
        store: IndexStore,
        mru: MRUTracker,
        config: CompletionConfig,
        index_available: bool,
        include_folders: bool = True,
    ) -> None:
        self._store = store
        self._mru = mru
        self._config = config
        self._index_available = index_available
        self._include_folders = include_folders
        self._matcher = TriggerMatcher(config.trigger_character)

    def complete(self, text: str, cursor: int | None = None) -> CompletionList:
        """Return suggestions for the mention token ending at cursor.

        Engine faults never reach the caller; they yield an empty list plus a warning.
        """
        text_before_cursor = text if cursor is None else text[: max(cursor, 0)]
        context = self._matcher.match(text_before_cursor)
        if context is None:
            return CompletionList()
        try:
            if not context.query:
                return self._empty_query(context)
            return self._ranked(context)
        except Exception as error:
            return CompletionList(
                warnings=[f"Completion failed: {type(error).__name__}: {error}"]
            )

    def acknowledge_selection(self, path: str) -> list[str]:
        """Record an accepted suggestion; returns persistence warnings, if any."""
        self._mru.record_selection(path)
        return self._mru.drain_warnings()

    def _empty_query(self, context: MentionContext) -> CompletionList:
        if not self._index_available:
            hint = CompletionItem(
                display_path=NO_INDEX_HINT,
                insert_text="",
                detail="",
                sort_rank="0",
                kind=KIND_HINT,
                filter_text=self._matcher.trigger_character,
                replace_start=context.replace_start,
                selectable=False,
            )
            return CompletionList(items=[hint])
        recent_paths = set(self._mru.paths())
        suggestions = self._mru.default_suggestions(
            self._store.entries(),
            max_items=self._config.max_items,
            folders=self._store.folder_entries(),
        )
        items = [
            self._item(
                candidate,
                context,
                rank=f"0{position:05d}",
                detail=RECENT_DETAIL if candidate.entry.path in recent_paths else None,
            )
            for position, candidate in enumerate(suggestions)
        ]
        return CompletionList(items=items)

    def _ranked(self, context: MentionContext) -> CompletionList:
        max_items = self._config.max_items
        files = rank_query(context.query, self._store.entries(), max_items)
        items = [
            self._item(candidate, context, rank=f"0{position:05d}")
            for position, candidate in enumerate(files)
        ]
        remaining = max_items - len(items)
        if self._include_folders and remaining > 0:
            folders = rank_query(context.query, self._store.folder_entries(), remaining)
            items.extend(
                self._item(candidate, context, rank=f"1{position:05d}")
                for position, candidate in enumerate(folders)
            )
        return CompletionList(items=items)

    @staticmethod
    def _item(
        candidate: ScoredEntry,
        context: MentionContext,
        rank: str,
        detail: str | None = None,
    ) -> CompletionItem:
        entry = candidate.entry
        is_folder = entry.kind == ENTRY_KIND_FOLDER
        return CompletionItem(
            display_path=entry.path,
            insert_text=entry.path,
            detail=detail or (FOLDER_DETAIL if is_folder else FILE_DETAIL),
            sort_rank=rank,
            kind=entry.kind,
            filter_text=context.typed_text,
            replace_start=context.replace_start,
            accept_command=SELECT_COMMAND,
            score=candidate.score,
        )
