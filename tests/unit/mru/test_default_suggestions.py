from __future__ import annotations

import pytest

from path_mention.index import build_entry, build_folder_entry
from path_mention.mru import MRUTracker, baseline_score


class MemoryStateStore:
    def __init__(self) -> None:
        self.values: dict[str, object] = {}

    def get(self, key: str) -> object | None:
        return self.values.get(key)

    def set(self, key: str, value: object) -> None:
        self.values[key] = value


def _tracker(*selected: str) -> MRUTracker:
    tracker = MRUTracker(MemoryStateStore())
    for path in selected:
        tracker.record_selection(path)
    return tracker


def test_recent_paths_come_back_most_recent_first() -> None:
    tracker = _tracker("c.py", "b.py", "a.py")
    entries = [build_entry(path) for path in ("a.py", "b.py", "c.py")]

    suggestions = tracker.default_suggestions(entries)

    assert [item.entry.path for item in suggestions] == ["a.py", "b.py", "c.py"]
    assert [item.score for item in suggestions] == [100.0, 97.0, 94.0]


def test_recent_paths_no_longer_indexed_are_skipped() -> None:
    tracker = _tracker("b.py", "gone.py")
    entries = [build_entry("b.py")]

    suggestions = tracker.default_suggestions(entries)

    assert [(item.entry.path, item.score) for item in suggestions] == [("b.py", 100.0)]


def test_recent_folder_is_suggested_but_folders_are_never_extras() -> None:
    tracker = _tracker("src")
    entries = [build_entry("src/a.py")]
    folders = [build_folder_entry("src"), build_folder_entry("lib")]

    suggestions = tracker.default_suggestions(entries, folders=folders)

    assert [item.entry.path for item in suggestions] == ["src", "src/a.py"]


def test_baseline_score_rewards_shallow_short_non_test_files() -> None:
    assert baseline_score(build_entry("README.md")) == pytest.approx(49.1)
    assert baseline_score(build_entry("tests/x.py")) == pytest.approx(37.0)
    assert baseline_score(build_entry("a/b/c/d/e/f/g/h/i/j/k.py")) == pytest.approx(27.6)


def test_extras_need_baseline_above_floor() -> None:
    tracker = _tracker()
    paths = ("a/b/c/d/e/f/g/h/i/j/k.py", "tests/x.py", "README.md")
    entries = [build_entry(path) for path in paths]

    suggestions = tracker.default_suggestions(entries)

    assert [item.entry.path for item in suggestions] == ["README.md", "tests/x.py"]


def test_extras_limited_to_thirty_and_ordered_by_path_on_ties() -> None:
    tracker = _tracker("z/recent.py")
    entries = [build_entry(f"f{index:02d}.py") for index in range(40)]
    entries.append(build_entry("z/recent.py"))

    suggestions = tracker.default_suggestions(entries)

    paths = [item.entry.path for item in suggestions]
    assert len(paths) == 31
    assert paths[0] == "z/recent.py"
    assert paths[1:] == [f"f{index:02d}.py" for index in range(30)]


def test_default_suggestions_capped_at_max_items() -> None:
    tracker = _tracker("a.py", "b.py")
    entries = [build_entry(path) for path in ("a.py", "b.py", "c.py", "d.py")]

    suggestions = tracker.default_suggestions(entries, max_items=3)

    assert [item.entry.path for item in suggestions] == ["b.py", "a.py", "c.py"]


def test_empty_index_yields_no_suggestions_even_with_recent_paths() -> None:
    tracker = _tracker("src/a.py", "README.md")

    assert tracker.default_suggestions([]) == []
    assert tracker.paths() == ["README.md", "src/a.py"]
