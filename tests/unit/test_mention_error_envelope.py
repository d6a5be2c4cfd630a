from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from path_mention.server import StdioServer, create_server


def _handle(server: StdioServer, payload: object) -> dict[str, object]:
    return asyncio.run(server.handle_payload(payload))


def test_malformed_json_returns_invalid_json_error(tmp_path: Path) -> None:
    server = create_server(workspace_root=str(tmp_path))

    response = asyncio.run(server.handle_json_line("{not-json"))

    assert response["ok"] is False
    assert response["error"] == {
        "code": "INVALID_JSON",
        "message": "Request must be valid JSON.",
    }
    assert str(response["request_id"]).startswith("req-")


def test_non_object_request_returns_invalid_request(tmp_path: Path) -> None:
    server = create_server(workspace_root=str(tmp_path))

    response = _handle(server, ["mention.status"])

    assert response["ok"] is False
    assert response["error"]["code"] == "INVALID_REQUEST"
    assert response["request_id"] == "req-000001"


def test_missing_method_returns_invalid_request(tmp_path: Path) -> None:
    server = create_server(workspace_root=str(tmp_path))

    response = _handle(server, {"id": "abc", "params": {}})

    assert response["request_id"] == "abc"
    assert response["error"] == {
        "code": "INVALID_REQUEST",
        "message": "Request method must be a non-empty string.",
    }


def test_unknown_tool_returns_explicit_error(tmp_path: Path) -> None:
    server = create_server(workspace_root=str(tmp_path))

    response = _handle(
        server, {"id": "abc-123", "method": "mention.unknown", "params": {"k": "v"}}
    )

    assert response["ok"] is False
    assert response["request_id"] == "abc-123"
    assert response["result"] == {}
    assert response["warnings"] == []
    assert response["error"] == {
        "code": "UNKNOWN_TOOL",
        "message": "Unknown tool: mention.unknown",
    }


def test_invalid_tools_call_params_returns_invalid_params_error(tmp_path: Path) -> None:
    server = create_server(workspace_root=str(tmp_path))
    payload = {
        "id": 7,
        "method": "tools/call",
        "params": {"name": "mention.status", "arguments": []},
    }

    response = _handle(server, json.loads(json.dumps(payload)))

    assert response["ok"] is False
    assert response["request_id"] == "7"
    assert response["error"] == {
        "code": "INVALID_PARAMS",
        "message": "tools/call params.arguments must be an object.",
    }


@pytest.mark.parametrize(
    ("method", "params", "message"),
    [
        ("mention.complete", {"text": 5}, "mention.complete text must be a string."),
        (
            "mention.complete",
            {"text": "@a", "cursor": True},
            "mention.complete cursor must be an integer when provided.",
        ),
        ("mention.select", {"path": "  "}, "mention.select path must be a non-empty string."),
        (
            "workspace.file_created",
            {},
            "workspace file event path must be a non-empty string.",
        ),
    ],
)
def test_invalid_tool_arguments_return_invalid_params(
    tmp_path: Path, method: str, params: dict[str, object], message: str
) -> None:
    server = create_server(workspace_root=str(tmp_path))

    response = _handle(server, {"id": "bad-args", "method": method, "params": params})

    assert response["ok"] is False
    assert response["error"] == {"code": "INVALID_PARAMS", "message": message}


def test_unexpected_handler_failure_returns_internal_error(tmp_path: Path, monkeypatch) -> None:
    server = create_server(workspace_root=str(tmp_path))

    def _boom() -> dict[str, object]:
        raise RuntimeError("boom")

    monkeypatch.setattr(server.service, "status", _boom)

    response = _handle(server, {"id": "req-500", "method": "mention.status", "params": {}})

    assert response["ok"] is False
    assert response["error"] == {
        "code": "INTERNAL_ERROR",
        "message": "Unhandled server error while executing tool.",
    }
