"""MCP tools for capability filtering: filtered lists, metadata, statistics, policy changes."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from mcp.types import TextContent, Tool

from contextgate.context import ALL_CONTEXT_TYPES
from contextgate.filtering import FILTER_MODES, InvalidConfigurationError
from contextgate.mcp_tools.common import (
    _error,
    _text,
    _validate_bool,
    _validate_capability_name,
    _validate_ids,
    _validate_str,
)
from contextgate.reporting import build_capability_report


_CONTEXT_TYPE_PROPERTY: dict[str, Any] = {
    "type": "string",
    "enum": [c.value for c in ALL_CONTEXT_TYPES],
    "description": "Context to filter for; detected from ticket/session when omitted",
}


def register() -> tuple[list[Tool], dict[str, Callable[..., Any]]]:
    """Return (tool_definitions, handler_map) for filtering-domain tools."""
    tools = [
        Tool(
            name="get_filtered_tools",
            description=(
                "Get the tools visible in the current context under the active filter mode, "
                "with total count and reduction percentage. shadow_mode also lists hidden tools."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "context_type": _CONTEXT_TYPE_PROPERTY,
                    "ticket_id": {"type": "string", "description": "Ticket ID for context detection"},
                    "session_id": {"type": "string", "description": "Session ID for context detection"},
                    "shadow_mode": {"type": "boolean", "default": False, "description": "Also list hidden tools"},
                },
            },
        ),
        Tool(
            name="get_tool_metadata",
            description="Get category, relevant contexts, and priority (1=critical .. 4=advanced) for one tool",
            inputSchema={
                "type": "object",
                "properties": {
                    "tool_name": {"type": "string", "description": "Tool name"},
                },
                "required": ["tool_name"],
            },
        ),
        Tool(
            name="get_tool_statistics",
            description="Tool counts per category, context, and priority; per-context visibility under the current policy; consolidation hints",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="set_filter_mode",
            description=(
                "Change the filter mode: strict (priority 1), default (1-2), permissive (1-3), full (1-4). "
                "Lasts until the server restarts."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "mode": {"type": "string", "enum": list(FILTER_MODES), "description": "Filter mode"},
                },
                "required": ["mode"],
            },
        ),
        Tool(
            name="set_filtering_enabled",
            description="Enable or disable context-aware filtering. When disabled every tool is visible. Lasts until the server restarts.",
            inputSchema={
                "type": "object",
                "properties": {
                    "enabled": {"type": "boolean", "description": "Enable or disable filtering"},
                },
                "required": ["enabled"],
            },
        ),
        Tool(
            name="check_tool_visibility",
            description="Check whether a tool is visible in a context, and which rule decided it",
            inputSchema={
                "type": "object",
                "properties": {
                    "tool_name": {"type": "string", "description": "Tool name"},
                    "context_type": _CONTEXT_TYPE_PROPERTY,
                    "ticket_id": {"type": "string", "description": "Ticket ID for context detection"},
                    "session_id": {"type": "string", "description": "Session ID for context detection"},
                },
                "required": ["tool_name"],
            },
        ),
    ]

    handlers: dict[str, Callable[..., Any]] = {
        "get_filtered_tools": _handle_get_filtered_tools,
        "get_tool_metadata": _handle_get_tool_metadata,
        "get_tool_statistics": _handle_get_tool_statistics,
        "set_filter_mode": _handle_set_filter_mode,
        "set_filtering_enabled": _handle_set_filtering_enabled,
        "check_tool_visibility": _handle_check_tool_visibility,
    }

    return tools, handlers


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_get_filtered_tools(arguments: dict[str, Any]) -> list[TextContent]:
    from contextgate.mcp_server import _get_filter

    context_type = arguments.get("context_type")
    if err := _validate_str(context_type, "context_type"):
        return err
    shadow_mode = arguments.get("shadow_mode", False)
    if err := _validate_bool(shadow_mode, "shadow_mode"):
        return err
    ids, err = _validate_ids(arguments, "ticket_id", "session_id")
    if err:
        return err
    try:
        result = _get_filter().filter(context_type=context_type, shadow_mode=bool(shadow_mode), **ids)
    except ValueError as e:
        return _error(str(e), "validation_error")
    return _text(result)


async def _handle_get_tool_metadata(arguments: dict[str, Any]) -> list[TextContent]:
    from contextgate.mcp_server import _get_filter

    name, err = _validate_capability_name(arguments.get("tool_name"))
    if err:
        return err
    descriptor = _get_filter().registry.get_descriptor(name)
    if descriptor is None:
        return _error(f"Tool not found: {name}. Use get_tool_statistics to see all tools.", "not_found")
    return _text(descriptor.to_dict())


async def _handle_get_tool_statistics(arguments: dict[str, Any]) -> list[TextContent]:
    from contextgate.mcp_server import _get_filter

    return _text(build_capability_report(_get_filter()))


async def _handle_set_filter_mode(arguments: dict[str, Any]) -> list[TextContent]:
    from contextgate.mcp_server import _get_filter

    mode = arguments.get("mode")
    if err := _validate_str(mode, "mode"):
        return err
    capability_filter = _get_filter()
    try:
        capability_filter.set_mode(mode)
    except InvalidConfigurationError as e:
        return _error(str(e), "invalid_configuration")
    info = FILTER_MODES[capability_filter.mode]
    return _text({"status": "ok", "mode": info.name, "max_priority": info.max_priority, "description": info.description})


async def _handle_set_filtering_enabled(arguments: dict[str, Any]) -> list[TextContent]:
    from contextgate.mcp_server import _get_filter

    enabled = arguments.get("enabled")
    if enabled is None:
        return _error("enabled is required", "validation_error")
    if err := _validate_bool(enabled, "enabled"):
        return err
    capability_filter = _get_filter()
    try:
        capability_filter.set_enabled(enabled)
    except InvalidConfigurationError as e:
        return _error(str(e), "invalid_configuration")
    return _text({"status": "ok", "enabled": capability_filter.enabled})


async def _handle_check_tool_visibility(arguments: dict[str, Any]) -> list[TextContent]:
    from contextgate.mcp_server import _get_filter

    name, err = _validate_capability_name(arguments.get("tool_name"))
    if err:
        return err
    context_type = arguments.get("context_type")
    if err := _validate_str(context_type, "context_type"):
        return err
    ids, err = _validate_ids(arguments, "ticket_id", "session_id")
    if err:
        return err
    try:
        check = _get_filter().explain(name, context_type=context_type, **ids)
    except KeyError:
        return _error(f"Tool not found: {name}", "not_found")
    except ValueError as e:
        return _error(str(e), "validation_error")
    return _text(check)
