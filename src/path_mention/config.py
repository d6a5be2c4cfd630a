"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "path_mention.toml"
DATA_DIR_NAME = ".path_mention"

DEFAULT_TRIGGER_CHARACTER = "@"
DEFAULT_EXCLUDE_PATTERNS = "**/node_modules/**,**/.git/**,**/dist/**,**/build/**"
DEFAULT_MAX_INDEXED_ENTRIES = 5_000
DEFAULT_MAX_ITEMS = 50
DEFAULT_MRU_CAPACITY = 20
DEFAULT_REFRESH_DEBOUNCE_MS = 500

MAX_INDEXED_ENTRIES_CAP = 100_000
MAX_ITEMS_CAP = 500
MRU_CAPACITY_CAP = 200


@dataclass(slots=True, frozen=True)
class IndexConfig:
    """Enumeration settings for the mention index."""

    exclude_globs: tuple[str, ...]
    max_indexed_entries: int
    allowlist_folders: tuple[str, ...]
    include_folders: bool


@dataclass(slots=True, frozen=True)
class CompletionConfig:
    """Per-keystroke completion settings."""

    trigger_character: str
    max_items: int
    mru_capacity: int


@dataclass(slots=True, frozen=True)
class MentionConfig:
    """Fully merged configuration."""

    workspace_root: Path | None
    data_dir: Path
    index: IndexConfig
    completion: CompletionConfig
    refresh_debounce_ms: int

    @property
    def has_workspace(self) -> bool:
        """Return True when a workspace root is configured."""
        return self.workspace_root is not None

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for tool responses."""
        return {
            "workspace_root": str(self.workspace_root) if self.workspace_root else None,
            "data_dir": str(self.data_dir),
            "index": {
                "exclude_globs": list(self.index.exclude_globs),
                "max_indexed_entries": self.index.max_indexed_entries,
                "allowlist_folders": list(self.index.allowlist_folders),
                "include_folders": self.index.include_folders,
            },
            "completion": {
                "trigger_character": self.completion.trigger_character,
                "max_items": self.completion.max_items,
                "mru_capacity": self.completion.mru_capacity,
            },
            "refresh_debounce_ms": self.refresh_debounce_ms,
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    trigger_character: str | None = None
    max_indexed_entries: int | None = None
    max_items: int | None = None
    allowlist_folders: tuple[str, ...] | None = None


def parse_exclude_patterns(raw: str) -> tuple[str, ...]:
    """Split a comma-separated glob list, dropping blanks."""
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def default_config(workspace_root: Path | None) -> MentionConfig:
    """Build default config for an optional workspace root."""
    resolved_root = workspace_root.resolve() if workspace_root is not None else None
    data_dir = (
        resolved_root / DATA_DIR_NAME if resolved_root is not None else Path.home() / DATA_DIR_NAME
    )
    return MentionConfig(
        workspace_root=resolved_root,
        data_dir=data_dir,
        index=IndexConfig(
            exclude_globs=parse_exclude_patterns(DEFAULT_EXCLUDE_PATTERNS),
            max_indexed_entries=DEFAULT_MAX_INDEXED_ENTRIES,
            allowlist_folders=(),
            include_folders=True,
        ),
        completion=CompletionConfig(
            trigger_character=DEFAULT_TRIGGER_CHARACTER,
            max_items=DEFAULT_MAX_ITEMS,
            mru_capacity=DEFAULT_MRU_CAPACITY,
        ),
        refresh_debounce_ms=DEFAULT_REFRESH_DEBOUNCE_MS,
    )


def load_config_file(config_path: Path) -> dict[str, object]:
    """Load an optional TOML config file."""
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{config_path.name} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{field}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _exclude_globs(value: object) -> tuple[str, ...]:
    if isinstance(value, str):
        return parse_exclude_patterns(value)
    return tuple(item.strip() for item in _tuple_of_strings(value, "mention.exclude_patterns"))


def _trigger_character(value: object, name: str) -> str:
    if not isinstance(value, str) or len(value) != 1 or value.isspace():
        raise ValueError(f"Config field '{name}' must be a single non-whitespace character.")
    return value


def merge_config(
    base: MentionConfig, payload: dict[str, object], overrides: CliOverrides
) -> MentionConfig:
    """Merge defaults, config file, then CLI/startup overrides."""
    mention = _get_table(payload, "mention")

    trigger_character = base.completion.trigger_character
    if "trigger_character" in mention:
        trigger_character = _trigger_character(
            mention["trigger_character"], "mention.trigger_character"
        )
    exclude_globs = base.index.exclude_globs
    if "exclude_patterns" in mention:
        exclude_globs = _exclude_globs(mention["exclude_patterns"])
    allowlist_folders = base.index.allowlist_folders
    if "allowlist_folders" in mention:
        allowlist_folders = _tuple_of_strings(
            mention["allowlist_folders"], "mention.allowlist_folders"
        )
    include_folders = base.index.include_folders
    if "include_folders" in mention:
        raw_include_folders = mention["include_folders"]
        if not isinstance(raw_include_folders, bool):
            raise ValueError("Config field 'mention.include_folders' must be a boolean.")
        include_folders = raw_include_folders

    merged = MentionConfig(
        workspace_root=base.workspace_root,
        data_dir=base.data_dir,
        index=IndexConfig(
            exclude_globs=exclude_globs,
            max_indexed_entries=_optional_positive_int_with_cap(
                mention.get("max_indexed_entries"),
                "mention.max_indexed_entries",
                base.index.max_indexed_entries,
                MAX_INDEXED_ENTRIES_CAP,
            ),
            allowlist_folders=allowlist_folders,
            include_folders=include_folders,
        ),
        completion=CompletionConfig(
            trigger_character=trigger_character,
            max_items=_optional_positive_int_with_cap(
                mention.get("max_items"),
                "mention.max_items",
                base.completion.max_items,
                MAX_ITEMS_CAP,
            ),
            mru_capacity=_optional_positive_int_with_cap(
                mention.get("mru_capacity"),
                "mention.mru_capacity",
                base.completion.mru_capacity,
                MRU_CAPACITY_CAP,
            ),
        ),
        refresh_debounce_ms=_optional_non_negative_int(
            mention.get("refresh_debounce_ms"),
            "mention.refresh_debounce_ms",
            base.refresh_debounce_ms,
        ),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: MentionConfig, overrides: CliOverrides) -> MentionConfig:
    """Apply startup overrides at highest precedence."""
    trigger_character = config.completion.trigger_character
    if overrides.trigger_character is not None:
        trigger_character = _trigger_character(
            overrides.trigger_character, "overrides.trigger_character"
        )
    index = IndexConfig(
        exclude_globs=config.index.exclude_globs,
        max_indexed_entries=_optional_positive_int_with_cap(
            overrides.max_indexed_entries,
            "overrides.max_indexed_entries",
            config.index.max_indexed_entries,
            MAX_INDEXED_ENTRIES_CAP,
        ),
        allowlist_folders=(
            overrides.allowlist_folders
            if overrides.allowlist_folders is not None
            else config.index.allowlist_folders
        ),
        include_folders=config.index.include_folders,
    )
    completion = CompletionConfig(
        trigger_character=trigger_character,
        max_items=_optional_positive_int_with_cap(
            overrides.max_items,
            "overrides.max_items",
            config.completion.max_items,
            MAX_ITEMS_CAP,
        ),
        mru_capacity=config.completion.mru_capacity,
    )
    data_dir = overrides.data_dir or config.data_dir
    return MentionConfig(
        workspace_root=config.workspace_root,
        data_dir=data_dir.resolve(),
        index=index,
        completion=completion,
        refresh_debounce_ms=config.refresh_debounce_ms,
    )


def load_effective_config(
    workspace_root: Path | None,
    overrides: CliOverrides | None = None,
    config_path: Path | None = None,
) -> MentionConfig:
    """Load effective config using merge order defaults -> config file -> overrides."""
    base = default_config(workspace_root)
    if config_path is None and base.workspace_root is not None:
        config_path = base.workspace_root / CONFIG_FILE_NAME
    payload = load_config_file(config_path) if config_path is not None else {}
    return merge_config(base, payload, overrides or CliOverrides())


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value


def _optional_non_negative_int(value: object, name: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"Config field '{name}' must be a non-negative integer.")
    return value
