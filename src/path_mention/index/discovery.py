"""Workspace path enumeration: git-aware listing with a bounded walk fallback."""

from __future__ import annotations

import asyncio
import fnmatch
import os
from pathlib import Path

from path_mention.config import MentionConfig
from path_mention.index.models import PathListing
from path_mention.index.paths import is_inside

GIT_LISTING_TIMEOUT_SECONDS = 10.0

SOURCE_GIT = "git"
SOURCE_WALK = "walk"
SOURCE_ALLOWLIST = "allowlist"
SOURCE_NONE = "none"


async def list_workspace_paths(config: MentionConfig) -> PathListing:
    """Enumerate the workspace, or the allowlist when no workspace is open."""
    exclude_globs = config.index.exclude_globs
    max_count = config.index.max_indexed_entries
    if config.workspace_root is not None:
        paths, source, warnings = await list_root_paths(
            config.workspace_root, exclude_globs, max_count
        )
        prefix = data_dir_prefix(config.workspace_root, config.data_dir)
        kept = tuple(path for path in paths if not is_inside(path, prefix))
        return PathListing(paths=kept, source=source, warnings=tuple(warnings))

    if not config.index.allowlist_folders:
        return PathListing(paths=(), source=SOURCE_NONE)

    collected: list[str] = []
    warnings: list[str] = []
    for folder in config.index.allowlist_folders:
        try:
            root = Path(folder).expanduser().resolve()
            paths, _, folder_warnings = await list_root_paths(root, exclude_globs, max_count)
        except (OSError, ValueError) as error:
            warnings.append(f"Skipped allowlist folder {folder}: {error}")
            continue
        warnings.extend(folder_warnings)
        prefix = root.as_posix().rstrip("/")
        collected.extend(f"{prefix}/{path}" for path in paths)
    return PathListing(
        paths=tuple(collected),
        source=SOURCE_ALLOWLIST,
        warnings=tuple(warnings),
    )


async def list_root_paths(
    root: Path,
    exclude_globs: tuple[str, ...],
    max_count: int,
) -> tuple[list[str], str, list[str]]:
    """List files under root relative to it; returns (paths, source, warnings)."""
    listed = await git_list_paths(root)
    if listed is not None:
        kept = [path for path in listed if not should_exclude(path, exclude_globs)]
        return kept[:max_count], SOURCE_GIT, []
    paths = await asyncio.to_thread(walk_paths, root, exclude_globs, max_count)
    return paths, SOURCE_WALK, [f"git listing unavailable for {root}; used directory walk."]


async def git_list_paths(root: Path) -> list[str] | None:
    """Return tracked and untracked-unignored files, or None when git cannot list root."""
    try:
        process = await asyncio.create_subprocess_exec(
            "git",
            "ls-files",
            "--cached",
            "--others",
            "--exclude-standard",
            "-z",
            cwd=str(root),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError:
        return None
    try:
        stdout, _ = await asyncio.wait_for(
            process.communicate(), timeout=GIT_LISTING_TIMEOUT_SECONDS
        )
    except TimeoutError:
        process.kill()
        await process.wait()
        return None
    if process.returncode != 0:
        return None
    text = stdout.decode("utf-8", errors="replace")
    return sorted({item for item in text.split("\0") if item})


def walk_paths(root: Path, exclude_globs: tuple[str, ...], max_count: int) -> list[str]:
    """Walk tree deterministically with light pruning for excluded directories."""
    output: list[str] = []
    if max_count < 1:
        return output
    excluded_dir_names = _excluded_dir_names(exclude_globs)
    stack: list[Path] = [root]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                ordered_entries = sorted(entries, key=lambda item: item.name)
        except OSError:
            continue
        for entry in reversed(ordered_entries):
            full_path = Path(entry.path)
            relative = full_path.relative_to(root).as_posix()
            if entry.is_dir(follow_symlinks=False):
                if entry.name in excluded_dir_names and should_exclude(
                    f"{relative}/", exclude_globs
                ):
                    continue
                stack.append(full_path)
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            if should_exclude(relative, exclude_globs):
                continue
            output.append(relative)
            if len(output) >= max_count:
                return sorted(output)
    return sorted(output)


def should_exclude(relative_path: str, exclude_globs: tuple[str, ...]) -> bool:
    """Return True when a path matches configured exclude globs."""
    anchored = f"/{relative_path}"
    return any(
        fnmatch.fnmatch(relative_path, pattern) or fnmatch.fnmatch(anchored, pattern)
        for pattern in exclude_globs
    )


def data_dir_prefix(workspace_root: Path, data_dir: Path) -> str | None:
    """Workspace-relative prefix of the data dir, when it lives inside the workspace."""
    resolved = data_dir.resolve()
    if not resolved.is_relative_to(workspace_root):
        return None
    return resolved.relative_to(workspace_root).as_posix()


def _excluded_dir_names(exclude_globs: tuple[str, ...]) -> set[str]:
    """Extract directory-name prunes from **/name/** glob patterns."""
    output: set[str] = set()
    for pattern in exclude_globs:
        if not pattern.startswith("**/") or not pattern.endswith("/**"):
            continue
        name = pattern[3:-3].strip("/")
        if not name:
            continue
        if any(char in name for char in "*?[]{}"):
            continue
        output.add(name)
    return output
