"""Built-in mention protocol tools."""

from __future__ import annotations

from collections.abc import Callable

from path_mention.config import MentionConfig
from path_mention.service import MentionService
from path_mention.tools.registry import ToolDispatchError, ToolHandler, ToolRegistry

MAX_AUDIT_ENTRIES = 200


def register_builtin_tools(
    registry: ToolRegistry,
    service: MentionService,
    read_audit_entries: Callable[[str | None, int], list[dict[str, object]]],
    config: MentionConfig,
) -> None:
    """Register the mention tool set."""
    registry.register("mention.status", _status_handler(service, config))
    registry.register("mention.complete", _complete_handler(service))
    registry.register("mention.select", _select_handler(service))
    registry.register("mention.refresh", _refresh_handler(service))
    registry.register("workspace.file_created", _file_event_handler(service.file_created))
    registry.register("workspace.file_deleted", _file_event_handler(service.file_deleted))
    registry.register("workspace.folders_changed", _folders_changed_handler(service))
    registry.register("mention.audit_log", _audit_log_handler(read_audit_entries))


def _status_handler(service: MentionService, config: MentionConfig) -> ToolHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        payload = service.status()
        payload["effective_config"] = config.to_public_dict()
        payload["__warnings__"] = service.drain_warnings()
        return payload

    return handler


def _complete_handler(service: MentionService) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        text_value = arguments.get("text")
        if not isinstance(text_value, str):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="mention.complete text must be a string.",
            )
        cursor_value = arguments.get("cursor")
        if cursor_value is not None and (
            isinstance(cursor_value, bool) or not isinstance(cursor_value, int)
        ):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="mention.complete cursor must be an integer when provided.",
            )
        completions = service.complete(text_value, cursor_value)
        result = completions.to_dict()
        if completions.warnings:
            result["__warnings__"] = list(completions.warnings)
        return result

    return handler


def _select_handler(service: MentionService) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path_value = _required_path(arguments, "mention.select")
        warnings = service.select(path_value)
        result: dict[str, object] = {"path": path_value, "recorded": True}
        if warnings:
            result["__warnings__"] = warnings
        return result

    return handler


def _refresh_handler(service: MentionService) -> ToolHandler:
    async def handler(arguments: dict[str, object]) -> dict[str, object]:
        wait_value = arguments.get("wait", False)
        if not isinstance(wait_value, bool):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="mention.refresh wait must be a boolean when provided.",
            )
        return await service.refresh(wait=wait_value)

    return handler


def _file_event_handler(apply_event: Callable[[str], bool]) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path_value = _required_path(arguments, "workspace file event")
        return {"path": path_value, "changed": apply_event(path_value)}

    return handler


def _folders_changed_handler(service: MentionService) -> ToolHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        service.folders_changed()
        return {"scheduled": True}

    return handler


def _audit_log_handler(
    read_audit_entries: Callable[[str | None, int], list[dict[str, object]]],
) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        since_value = arguments.get("since")
        limit_value = arguments.get("limit", 50)

        since: str | None = since_value if isinstance(since_value, str) else None
        limit = limit_value if isinstance(limit_value, int) else 50
        if limit < 1:
            limit = 1
        if limit > MAX_AUDIT_ENTRIES:
            limit = MAX_AUDIT_ENTRIES

        return {"entries": read_audit_entries(since, limit)}

    return handler


def _required_path(arguments: dict[str, object], tool: str) -> str:
    path_value = arguments.get("path")
    if not isinstance(path_value, str) or not path_value.strip():
        raise ToolDispatchError(
            code="INVALID_PARAMS",
            message=f"{tool} path must be a non-empty string.",
        )
    return path_value
