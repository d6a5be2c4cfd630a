"""Mention index: entries, enumeration, scoring and ranking."""

from .entries import ancestor_folders, build_entry, build_folder_entry, is_test_path
from .models import ENTRY_KIND_FILE, ENTRY_KIND_FOLDER, Entry, PathListing, ScoredEntry
from .ranking import DEFAULT_MAX_ITEMS, rank_candidates, rank_key, rank_query, score_entries
from .scoring import fuzzy_score, query_hints_test
from .store import IndexStatus, IndexStore, PathLister, RefreshState

__all__ = [
    "DEFAULT_MAX_ITEMS",
    "ENTRY_KIND_FILE",
    "ENTRY_KIND_FOLDER",
    "Entry",
    "IndexStatus",
    "IndexStore",
    "PathLister",
    "PathListing",
    "RefreshState",
    "ScoredEntry",
    "ancestor_folders",
    "build_entry",
    "build_folder_entry",
    "fuzzy_score",
    "is_test_path",
    "query_hints_test",
    "rank_candidates",
    "rank_key",
    "rank_query",
    "score_entries",
]
