"""Pure path -> Entry transform."""

from __future__ import annotations

import re
from typing import Final

from path_mention.index.models import ENTRY_KIND_FILE, ENTRY_KIND_FOLDER, Entry

TEST_PATH_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(_test\.|_spec\.|\.test\.|\.spec\.|(?:^|/)test_|__tests__|\btests?\b|\bspecs?\b)",
    re.IGNORECASE,
)
_EXTENSION_PATTERN: Final[re.Pattern[str]] = re.compile(r"\.[^.]*$")


def build_entry(path: str, kind: str = ENTRY_KIND_FILE) -> Entry:
    """Build an Entry whose derived fields are pure functions of path."""
    lower_path = path.lower()
    segments = tuple(lower_path.split("/"))
    basename = segments[-1]
    return Entry(
        path=path,
        lower_path=lower_path,
        segments=segments,
        basename=basename,
        stem=_EXTENSION_PATTERN.sub("", basename),
        depth=len(segments) - 1,
        is_test=is_test_path(path),
        kind=kind,
    )


def build_folder_entry(path: str) -> Entry:
    """Build an Entry for a directory path."""
    return build_entry(path, kind=ENTRY_KIND_FOLDER)


def is_test_path(path: str) -> bool:
    """Return True when path follows common test/spec naming conventions."""
    return TEST_PATH_PATTERN.search(path) is not None


def ancestor_folders(path: str) -> list[str]:
    """Return every ancestor directory of path, outermost first."""
    parts = path.split("/")
    output: list[str] = []
    for index in range(1, len(parts)):
        folder = "/".join(parts[:index])
        if folder:
            output.append(folder)
    return output
