from __future__ import annotations

import io
import json
from pathlib import Path

from path_mention.index import PathListing
from path_mention.server import build_arg_parser, create_server


def _static_lister(*paths: str):
    async def lister() -> PathListing:
        return PathListing(paths=tuple(paths), source="walk")

    return lister


def test_stdio_server_routes_multiple_requests(tmp_path: Path) -> None:
    server = create_server(
        workspace_root=str(tmp_path),
        lister=_static_lister("README.md", "src/main.py"),
    )
    in_stream = io.StringIO(
        "\n".join(
            [
                json.dumps({"id": "req-1", "method": "mention.status", "params": {}}),
                "",
                json.dumps(
                    {
                        "id": "req-2",
                        "method": "tools/call",
                        "params": {
                            "name": "mention.complete",
                            "arguments": {"text": "see @main"},
                        },
                    }
                ),
                "{broken",
            ]
        )
        + "\n"
    )
    out_stream = io.StringIO()

    server.serve(in_stream=in_stream, out_stream=out_stream)
    lines = [line for line in out_stream.getvalue().splitlines() if line]

    assert len(lines) == 3
    first, second, third = (json.loads(line) for line in lines)

    assert first["request_id"] == "req-1"
    assert first["ok"] is True
    assert isinstance(first["result"], dict)

    assert second["request_id"] == "req-2"
    assert second["ok"] is True
    assert second["result"]["is_incomplete"] is True
    assert isinstance(second["result"]["items"], list)

    assert third["ok"] is False
    assert third["error"]["code"] == "INVALID_JSON"


def test_arg_parser_collects_repeated_allowlist_folders() -> None:
    args = build_arg_parser().parse_args(
        [
            "--workspace-root",
            "/ws",
            "--trigger-character",
            "#",
            "--max-items",
            "20",
            "--allowlist-folder",
            "/notes",
            "--allowlist-folder",
            "/docs",
        ]
    )

    assert args.workspace_root == "/ws"
    assert args.trigger_character == "#"
    assert args.max_items == 20
    assert args.allowlist_folders == ["/notes", "/docs"]
    assert args.data_dir is None
