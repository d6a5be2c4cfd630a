from __future__ import annotations

from pathlib import Path

import pytest

from path_mention.index.paths import is_inside, normalize_event_path

ROOT = Path("/ws/project")


@pytest.mark.parametrize(
    ("candidate", "expected"),
    [
        ("/ws/project/src/a.py", "src/a.py"),
        ("/ws/project/src/", "src"),
        ("src/a.py", "src/a.py"),
        ("./src//a.py", "src/a.py"),
        ("src\\pkg\\a.py", "src/pkg/a.py"),
        ("/elsewhere/notes.md", "/elsewhere/notes.md"),
        ("/ws/project-other/a.py", "/ws/project-other/a.py"),
    ],
)
def test_normalize_event_path(candidate: str, expected: str) -> None:
    assert normalize_event_path(ROOT, candidate) == expected


@pytest.mark.parametrize(
    "candidate",
    ["", "  ", ".", "../outside.py", "src/../../x.py", "/ws/project"],
)
def test_unusable_event_paths_return_none(candidate: str) -> None:
    assert normalize_event_path(ROOT, candidate) is None


def test_absolute_paths_kept_without_workspace() -> None:
    assert normalize_event_path(None, "/notes/todo.md") == "/notes/todo.md"
    assert normalize_event_path(None, "C:\\notes\\todo.md") == "C:/notes/todo.md"


def test_is_inside_uses_segment_boundaries() -> None:
    assert is_inside("a/b", "a") is True
    assert is_inside("a", "a") is True
    assert is_inside("ab/c", "a") is False
    assert is_inside("a/b", None) is False
