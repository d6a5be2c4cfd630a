from __future__ import annotations

import json
from pathlib import Path

from path_mention.state import JsonStateStore


def test_set_then_get_round_trips_and_keeps_other_keys(tmp_path: Path) -> None:
    store = JsonStateStore(tmp_path / "nested" / "state.json")

    store.set("first", [1, 2])
    store.set("second", {"k": "v"})

    assert store.get("first") == [1, 2]
    assert store.get("second") == {"k": "v"}
    assert store.get("missing") is None
    assert not (tmp_path / "nested" / "state.json.tmp").exists()


def test_unreadable_file_reads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonStateStore(path)

    assert store.get("mention.mru") is None

    store.set("mention.mru", [])
    assert json.loads(path.read_text(encoding="utf-8")) == {"mention.mru": []}


def test_non_object_file_reads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text("[1, 2, 3]\n", encoding="utf-8")

    assert JsonStateStore(path).get("anything") is None
