"""MCP server for contextgate.

Exposes context detection and capability filtering as MCP tools.
Direct SQLite, no daemon. The tool list itself is not filtered: agents
call get_filtered_tools to learn what is relevant right now.

Usage:
    contextgate-mcp                              # Auto-discover .contextgate/ from cwd
    contextgate-mcp --project /path/to/project   # Explicit project root
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Resource, TextContent, Tool

from contextgate.context import infer_all_active_contexts, summarize
from contextgate.core import CONTEXTGATE_DIR_NAME, DB_FILENAME, TrackerDB, find_contextgate_root, read_config
from contextgate.filtering import CapabilityFilter
from contextgate.mcp_tools import context as context_tools
from contextgate.mcp_tools import filtering as filtering_tools
from contextgate.mcp_tools.common import _error

server = Server("contextgate")
db: TrackerDB | None = None
capability_filter: CapabilityFilter | None = None
_logger: logging.Logger | None = None

_TOOLS: list[Tool] = []
_HANDLERS: dict[str, Callable[..., Any]] = {}
for _register in (context_tools.register, filtering_tools.register):
    _tools, _handlers = _register()
    _TOOLS.extend(_tools)
    _HANDLERS.update(_handlers)


def _get_db() -> TrackerDB:
    if db is None:
        msg = "Database not initialized"
        raise RuntimeError(msg)
    return db


def _get_filter() -> CapabilityFilter:
    if capability_filter is None:
        msg = "Capability filter not initialized"
        raise RuntimeError(msg)
    return capability_filter


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------

CONTEXTS_URI = "contextgate://contexts"


def _build_contexts_text() -> str:
    contexts = infer_all_active_contexts(_get_db())
    if not contexts:
        return "# Active contexts\n\nNo conversation sessions are currently active.\n"
    lines = ["# Active contexts", ""]
    lines.extend(f"- {c.session_id}: {summarize(c)}" for c in contexts)
    return "\n".join(lines) + "\n"


@server.list_resources()  # type: ignore[untyped-decorator,no-untyped-call]
async def list_resources() -> list[Resource]:
    return [
        Resource(
            uri=CONTEXTS_URI,  # type: ignore[arg-type]
            name="Active Contexts",
            description="One line per active conversation session: detected context, ticket, and project",
            mimeType="text/markdown",
        ),
    ]


@server.read_resource()  # type: ignore[untyped-decorator,no-untyped-call]
async def read_contexts(uri: Any) -> str:
    if str(uri) == CONTEXTS_URI:
        return _build_contexts_text()
    msg = f"Unknown resource: {uri}"
    raise ValueError(msg)


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@server.list_tools()  # type: ignore[untyped-decorator,no-untyped-call]
async def list_tools() -> list[Tool]:
    return list(_TOOLS)


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    handler = _HANDLERS.get(name)
    if handler is None:
        return _error(f"Unknown tool: {name}", "unknown_tool")

    t0 = time.monotonic()
    try:
        result: list[TextContent] = await handler(arguments or {})
    except Exception:
        if _logger:
            _logger.error("tool_error", extra={"tool": name, "args_data": arguments}, exc_info=True)
        raise
    else:
        duration_ms = round((time.monotonic() - t0) * 1000, 1)
        if _logger:
            _logger.info("tool_call", extra={"tool": name, "args_data": arguments, "duration_ms": duration_ms})
        return result


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def _run(project_path: Path | None) -> None:
    global db, capability_filter, _logger

    if project_path:
        state_dir = project_path / CONTEXTGATE_DIR_NAME
        if not state_dir.is_dir():
            print(f"Error: {state_dir} not found. Run 'contextgate init' first.", file=sys.stderr)
            sys.exit(1)
    else:
        try:
            state_dir = find_contextgate_root()
        except FileNotFoundError:
            print(f"Error: No {CONTEXTGATE_DIR_NAME}/ found. Run 'contextgate init' first.", file=sys.stderr)
            sys.exit(1)

    from contextgate.logging import setup_logging

    _logger = setup_logging(state_dir)

    config = read_config(state_dir)
    db = TrackerDB(state_dir / DB_FILENAME, prefix=config.get("prefix", "cg"))
    db.initialize()
    capability_filter = CapabilityFilter.from_store(db)

    _logger.info(
        "mcp_server_start",
        extra={"tool": "server", "args_data": {"project": str(state_dir.parent), "filtering_enabled": capability_filter.enabled}},
    )

    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    import asyncio

    parser = argparse.ArgumentParser(description="contextgate MCP server")
    parser.add_argument("--project", type=Path, default=None, help="Project root (auto-discovers .contextgate/ if omitted)")
    args = parser.parse_args()

    asyncio.run(_run(args.project))


if __name__ == "__main__":
    main()
