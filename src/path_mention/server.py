"""STDIO JSON-lines server entrypoint."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from path_mention.config import CliOverrides, MentionConfig, load_effective_config
from path_mention.index.store import PathLister
from path_mention.logging import AuditEvent, JsonlAuditLogger, sanitize_arguments, utc_timestamp
from path_mention.service import MentionService
from path_mention.state import StateStore
from path_mention.tools.builtin import register_builtin_tools
from path_mention.tools.registry import ToolDispatchError, ToolRegistry


@dataclass(slots=True, frozen=True)
class Request:
    """Normalized incoming request."""

    request_id: str
    method: str
    params: dict[str, object]


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for server startup configuration."""
    parser = argparse.ArgumentParser(prog="path-mention")
    parser.add_argument("--workspace-root", required=False, default=None)
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument("--config", required=False, default=None)
    parser.add_argument("--trigger-character", required=False, default=None)
    parser.add_argument("--max-indexed-entries", type=int, required=False, default=None)
    parser.add_argument("--max-items", type=int, required=False, default=None)
    parser.add_argument(
        "--allowlist-folder",
        action="append",
        dest="allowlist_folders",
        required=False,
        default=None,
    )
    return parser


class StdioServer:
    """Deterministic JSON-lines router in front of one mention session."""

    def __init__(self, config: MentionConfig, service: MentionService | None = None) -> None:
        self._config = config
        self._service = service or MentionService(config)
        self._audit_logger = JsonlAuditLogger(path=config.data_dir / "audit.jsonl")
        self._registry = ToolRegistry()
        register_builtin_tools(
            self._registry,
            service=self._service,
            read_audit_entries=self._audit_logger.read,
            config=config,
        )
        self._fallback_request_counter = 0

    @property
    def service(self) -> MentionService:
        """Return the session behind this server."""
        return self._service

    async def start(self, wait: bool = False) -> None:
        """Start the session (MRU load + initial refresh)."""
        await self._service.start(wait=wait)

    async def close(self) -> None:
        """Tear the session down."""
        await self._service.close()

    def serve(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Process JSON-line requests from in_stream until EOF."""
        asyncio.run(self.serve_async(in_stream, out_stream))

    async def serve_async(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Async body of serve; reads block in a worker thread, everything else is loop-bound."""
        await self.start()
        try:
            while True:
                raw_line = await asyncio.to_thread(in_stream.readline)
                if not raw_line:
                    break
                line = raw_line.strip()
                if not line:
                    continue
                response = await self.handle_json_line(line)
                out_stream.write(f"{json.dumps(response, sort_keys=True)}\n")
                out_stream.flush()
        finally:
            await self.close()

    async def handle_json_line(self, raw_line: str) -> dict[str, object]:
        """Handle a single JSON-line request."""
        try:
            payload = json.loads(raw_line)
        except json.JSONDecodeError:
            request_id = self.next_request_id()
            response = self.error_response(
                request_id=request_id,
                code="INVALID_JSON",
                message="Request must be valid JSON.",
            )
            self.log_request(
                request_id=request_id,
                tool_name="invalid_json",
                arguments={"raw_line_length": len(raw_line)},
                response=response,
            )
            return response
        return await self.handle_payload(payload)

    async def handle_payload(self, payload: object) -> dict[str, object]:
        """Validate and dispatch a parsed payload."""
        parsed = self.parse_request(payload)
        if isinstance(parsed, dict):
            request_id_value = parsed.get("request_id")
            request_id = (
                request_id_value if isinstance(request_id_value, str) else self.next_request_id()
            )
            self.log_request(
                request_id=request_id,
                tool_name="invalid_request",
                arguments={},
                response=parsed,
            )
            return parsed

        request = parsed
        tool_name: str
        arguments: dict[str, object]
        if request.method == "tools/call":
            tool_name_value = request.params.get("name")
            arguments_value = request.params.get("arguments", {})
            if not isinstance(tool_name_value, str) or not tool_name_value:
                return self.error_response(
                    request_id=request.request_id,
                    code="INVALID_PARAMS",
                    message="tools/call params.name must be a non-empty string.",
                )
            if not isinstance(arguments_value, dict):
                return self.error_response(
                    request_id=request.request_id,
                    code="INVALID_PARAMS",
                    message="tools/call params.arguments must be an object.",
                )
            tool_name = tool_name_value
            arguments = arguments_value
        else:
            tool_name = request.method
            arguments = request.params

        try:
            result = await self._registry.dispatch(name=tool_name, arguments=arguments)
        except ToolDispatchError as error:
            response = self.error_response(
                request_id=request.request_id,
                code=error.code,
                message=error.message,
            )
        except Exception:
            response = self.error_response(
                request_id=request.request_id,
                code="INTERNAL_ERROR",
                message="Unhandled server error while executing tool.",
            )
        else:
            response = self.success_response(
                request_id=request.request_id,
                result=result,
                warnings=_extract_result_warnings(result),
            )
        self.log_request(
            request_id=request.request_id,
            tool_name=tool_name,
            arguments=arguments,
            response=response,
        )
        return response

    def parse_request(self, payload: object) -> Request | dict[str, object]:
        """Validate request payload and return normalized Request."""
        if not isinstance(payload, dict):
            return self.error_response(
                request_id=self.next_request_id(),
                code="INVALID_REQUEST",
                message="Request must be an object.",
            )

        request_id = self.extract_request_id(payload.get("id"))
        method = payload.get("method")
        params = payload.get("params", {})

        if not isinstance(method, str) or not method:
            return self.error_response(
                request_id=request_id,
                code="INVALID_REQUEST",
                message="Request method must be a non-empty string.",
            )
        if not isinstance(params, dict):
            return self.error_response(
                request_id=request_id,
                code="INVALID_PARAMS",
                message="Request params must be an object.",
            )

        return Request(request_id=request_id, method=method, params=params)

    def extract_request_id(self, request_id: object) -> str:
        """Extract request ID from payload or synthesize deterministic fallback."""
        if isinstance(request_id, str) and request_id:
            return request_id
        if isinstance(request_id, int):
            return str(request_id)
        return self.next_request_id()

    def next_request_id(self) -> str:
        """Generate deterministic fallback request IDs for invalid/missing IDs."""
        self._fallback_request_counter += 1
        return f"req-{self._fallback_request_counter:06d}"

    @staticmethod
    def success_response(
        request_id: str,
        result: dict[str, object],
        warnings: list[str] | None = None,
    ) -> dict[str, object]:
        """Build success envelope."""
        return {
            "request_id": request_id,
            "ok": True,
            "result": result,
            "warnings": warnings or [],
        }

    @staticmethod
    def error_response(request_id: str, code: str, message: str) -> dict[str, object]:
        """Build explicit error envelope."""
        return {
            "request_id": request_id,
            "ok": False,
            "result": {},
            "warnings": [],
            "error": {"code": code, "message": message},
        }

    def log_request(
        self,
        request_id: str,
        tool_name: str,
        arguments: dict[str, object],
        response: dict[str, object],
    ) -> None:
        """Append one sanitized audit event; audit failures never fail the request."""
        error = response.get("error")
        error_code = error.get("code") if isinstance(error, dict) else None
        metadata = sanitize_arguments(arguments)
        warnings = response.get("warnings")
        if isinstance(warnings, list) and warnings:
            metadata["warnings"] = list(warnings)
        event = AuditEvent(
            timestamp=utc_timestamp(),
            request_id=request_id,
            tool=tool_name,
            ok=bool(response.get("ok")),
            error_code=error_code if isinstance(error_code, str) else None,
            metadata=metadata,
        )
        try:
            self._audit_logger.append(event)
        except OSError:
            return


def create_server(
    workspace_root: str | None = None,
    cli_overrides: CliOverrides | None = None,
    config_path: str | None = None,
    lister: PathLister | None = None,
    storage: StateStore | None = None,
) -> StdioServer:
    """Create a server with effective merged config."""
    root = Path(workspace_root).resolve() if workspace_root is not None else None
    config = load_effective_config(
        workspace_root=root,
        overrides=cli_overrides,
        config_path=Path(config_path) if config_path is not None else None,
    )
    service = MentionService(config, lister=lister, storage=storage)
    return StdioServer(config=config, service=service)


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the path mention server process."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    overrides = CliOverrides(
        data_dir=Path(args.data_dir).resolve() if args.data_dir is not None else None,
        trigger_character=args.trigger_character,
        max_indexed_entries=args.max_indexed_entries,
        max_items=args.max_items,
        allowlist_folders=(
            tuple(args.allowlist_folders) if args.allowlist_folders is not None else None
        ),
    )
    server = create_server(
        workspace_root=args.workspace_root,
        cli_overrides=overrides,
        config_path=args.config,
    )
    server.serve(in_stream=sys.stdin, out_stream=sys.stdout)
    return 0


def _extract_result_warnings(result: dict[str, object]) -> list[str]:
    raw = result.pop("__warnings__", None)
    if not isinstance(raw, list):
        return []
    warnings: list[str] = []
    for item in raw:
        if isinstance(item, str):
            warnings.append(item)
    return warnings


if __name__ == "__main__":
    raise SystemExit(main())
