"""MCP tools for context detection: active context, all sessions, summaries, relevance."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from mcp.types import TextContent, Tool

from contextgate.context import infer_all_active_contexts, infer_context, is_context_relevant, summarize
from contextgate.mcp_tools.common import _error, _text, _validate_ids, _validate_str

_ID_PROPERTIES: dict[str, Any] = {
    "ticket_id": {"type": "string", "description": "Ticket ID to detect context for"},
    "project_id": {"type": "string", "description": "Project ID used when no ticket is found"},
    "session_id": {"type": "string", "description": "Conversation session ID; its ticket takes precedence over ticket_id"},
}


def register() -> tuple[list[Tool], dict[str, Callable[..., Any]]]:
    """Return (tool_definitions, handler_map) for context-domain tools."""
    tools = [
        Tool(
            name="detect_context",
            description=(
                "Detect the active context (ticket_work, planning, review, admin) from session and ticket state. "
                "in_progress -> ticket_work; backlog/ready -> planning; ai_review/human_review -> review; "
                "done or no ticket -> admin."
            ),
            inputSchema={"type": "object", "properties": dict(_ID_PROPERTIES)},
        ),
        Tool(
            name="detect_all_contexts",
            description="Detect the context of every active conversation session, in session order.",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="get_context_summary",
            description="One-line human-readable summary of the detected context",
            inputSchema={"type": "object", "properties": dict(_ID_PROPERTIES)},
        ),
        Tool(
            name="is_context_relevant",
            description="Check whether a tool category is relevant to the detected context",
            inputSchema={
                "type": "object",
                "properties": {
                    "category": {
                        "type": "string",
                        "description": "Tool category (ticket_work, planning, review, admin, code, testing, git, general, settings, project_management)",
                    },
                    **_ID_PROPERTIES,
                },
                "required": ["category"],
            },
        ),
    ]

    handlers: dict[str, Callable[..., Any]] = {
        "detect_context": _handle_detect_context,
        "detect_all_contexts": _handle_detect_all_contexts,
        "get_context_summary": _handle_get_context_summary,
        "is_context_relevant": _handle_is_context_relevant,
    }

    return tools, handlers


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_detect_context(arguments: dict[str, Any]) -> list[TextContent]:
    from contextgate.mcp_server import _get_db

    ids, err = _validate_ids(arguments, "ticket_id", "project_id", "session_id")
    if err:
        return err
    context = infer_context(_get_db(), **ids)
    return _text(context.to_dict())


async def _handle_detect_all_contexts(arguments: dict[str, Any]) -> list[TextContent]:
    from contextgate.mcp_server import _get_db

    contexts = infer_all_active_contexts(_get_db())
    return _text({"contexts": [c.to_dict() for c in contexts], "count": len(contexts)})


async def _handle_get_context_summary(arguments: dict[str, Any]) -> list[TextContent]:
    from contextgate.mcp_server import _get_db

    ids, err = _validate_ids(arguments, "ticket_id", "project_id", "session_id")
    if err:
        return err
    context = infer_context(_get_db(), **ids)
    return _text({"summary": summarize(context), "context_type": context.type.value})


async def _handle_is_context_relevant(arguments: dict[str, Any]) -> list[TextContent]:
    from contextgate.mcp_server import _get_db

    category = arguments.get("category")
    if err := _validate_str(category, "category"):
        return err
    category = (category or "").strip()
    if not category:
        return _error("category is required", "validation_error")
    ids, err = _validate_ids(arguments, "ticket_id", "project_id", "session_id")
    if err:
        return err
    context = infer_context(_get_db(), **ids)
    return _text(
        {
            "category": category,
            "relevant": is_context_relevant(context, category),
            "context_type": context.type.value,
            "summary": summarize(context),
        }
    )
