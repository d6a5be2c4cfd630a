"""Path normalization helpers for event and listing paths."""

from __future__ import annotations

import re
from pathlib import Path, PurePosixPath
from typing import Final

WINDOWS_ABSOLUTE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z]:[\\/]")


def _normalize_separators(candidate: str) -> tuple[str, bool]:
    """Normalize path separators and detect absolute-style inputs."""
    normalized = candidate.replace("\\", "/").strip()
    while "//" in normalized:
        normalized = normalized.replace("//", "/")
    if normalized.startswith("/"):
        return normalized, True
    if WINDOWS_ABSOLUTE_PATTERN.match(normalized):
        return normalized, True
    return normalized, False


def normalize_event_path(workspace_root: Path | None, candidate: str) -> str | None:
    """Return the canonical index key for a host-supplied path, or None when unusable.

    Absolute paths under the workspace root become workspace-relative; other absolute
    paths stay absolute, matching how allowlisted folders are keyed.
    """
    normalized, is_absolute_style = _normalize_separators(candidate)
    if is_absolute_style:
        absolute = PurePosixPath(normalized)
        if workspace_root is not None:
            root = PurePosixPath(workspace_root.as_posix())
            if absolute == root:
                return None
            if absolute.is_relative_to(root):
                return absolute.relative_to(root).as_posix()
        return normalized.rstrip("/") or None

    parts = [part for part in normalized.split("/") if part not in ("", ".")]
    if not parts or any(part == ".." for part in parts):
        return None
    return "/".join(parts)


def is_inside(path: str, prefix: str | None) -> bool:
    """Return True when path equals prefix or lies beneath it."""
    if prefix is None:
        return False
    return path == prefix or path.startswith(f"{prefix}/")
