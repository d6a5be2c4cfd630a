from __future__ import annotations

import asyncio
from pathlib import Path

from path_mention.config import CliOverrides, default_config, load_effective_config
from path_mention.index.discovery import (
    SOURCE_ALLOWLIST,
    SOURCE_GIT,
    SOURCE_NONE,
    SOURCE_WALK,
    data_dir_prefix,
    list_workspace_paths,
    should_exclude,
    walk_paths,
)

DEFAULT_EXCLUDES = ("**/node_modules/**", "**/.git/**", "**/dist/**", "**/build/**")


def _write(root: Path, relative: str) -> None:
    target = root / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text("x\n", encoding="utf-8")


def _make_tree(root: Path) -> None:
    for relative in (
        "README.md",
        "src/a.py",
        "src/b/c.py",
        "node_modules/pkg/index.js",
        "dist/out.js",
        "src/build/gen.py",
    ):
        _write(root, relative)


def test_walk_paths_applies_exclude_globs(tmp_path: Path) -> None:
    _make_tree(tmp_path)

    assert walk_paths(tmp_path, DEFAULT_EXCLUDES, 100) == ["README.md", "src/a.py", "src/b/c.py"]


def test_walk_paths_respects_max_count(tmp_path: Path) -> None:
    _make_tree(tmp_path)

    first = walk_paths(tmp_path, (), 2)

    assert len(first) == 2
    assert first == walk_paths(tmp_path, (), 2)
    assert walk_paths(tmp_path, (), 0) == []


def test_should_exclude_matches_nested_and_root_directories() -> None:
    assert should_exclude("node_modules/pkg/index.js", DEFAULT_EXCLUDES) is True
    assert should_exclude("web/node_modules/pkg/index.js", DEFAULT_EXCLUDES) is True
    assert should_exclude(".git/config", DEFAULT_EXCLUDES) is True
    assert should_exclude("src/a.py", DEFAULT_EXCLUDES) is False
    assert should_exclude("src/a.min.js", ("*.min.js",)) is True


def test_workspace_listing_skips_data_dir(tmp_path: Path) -> None:
    _write(tmp_path, "README.md")
    _write(tmp_path, "src/a.py")
    _write(tmp_path, ".path_mention/state.json")
    config = default_config(tmp_path)

    listing = asyncio.run(list_workspace_paths(config))

    assert listing.source in {SOURCE_GIT, SOURCE_WALK}
    assert listing.paths == ("README.md", "src/a.py")


def test_data_dir_prefix_inside_and_outside_workspace(tmp_path: Path) -> None:
    root = tmp_path.resolve()

    assert data_dir_prefix(root, root / ".path_mention") == ".path_mention"
    assert data_dir_prefix(root / "ws", root / "elsewhere") is None


def test_no_workspace_and_no_allowlist_lists_nothing(tmp_path: Path) -> None:
    config = load_effective_config(None, CliOverrides(data_dir=tmp_path / "data"))

    listing = asyncio.run(list_workspace_paths(config))

    assert listing.source == SOURCE_NONE
    assert listing.paths == ()


def test_allowlist_folders_are_listed_with_absolute_prefix(tmp_path: Path) -> None:
    notes = tmp_path / "notes"
    _write(notes, "todo.md")
    _write(notes, "ideas/one.md")
    config = load_effective_config(
        None,
        CliOverrides(
            data_dir=tmp_path / "data",
            allowlist_folders=(str(notes), str(tmp_path / "missing")),
        ),
    )

    listing = asyncio.run(list_workspace_paths(config))

    prefix = notes.resolve().as_posix()
    assert listing.source == SOURCE_ALLOWLIST
    assert listing.paths == (f"{prefix}/ideas/one.md", f"{prefix}/todo.md")
