"""Pure helpers shared across MCP tool modules.

This module has NO dependency on ``mcp_server`` module globals, so it can
be imported freely without triggering circular-import issues.
"""

from __future__ import annotations

import json
from typing import Any

from mcp.types import TextContent

from contextgate.types.api import ErrorResponse
from contextgate.validation import sanitize_capability_name, sanitize_record_id


def _text(content: object) -> list[TextContent]:
    if isinstance(content, str):
        return [TextContent(type="text", text=content)]
    return [TextContent(type="text", text=json.dumps(content, indent=2, default=str))]


def _error(message: str, code: str) -> list[TextContent]:
    return _text(ErrorResponse(error=message, code=code))


def _validate_str(value: Any, name: str) -> list[TextContent] | None:
    """Return a validation error if *value* is not ``None`` and not a ``str``."""
    if value is not None and not isinstance(value, str):
        return _error(f"{name} must be a string", "validation_error")
    return None


def _validate_bool(value: Any, name: str) -> list[TextContent] | None:
    """Return a validation error if *value* is not ``None`` and not a ``bool``."""
    if value is not None and not isinstance(value, bool):
        return _error(f"{name} must be a boolean", "validation_error")
    return None


def _validate_ids(arguments: dict[str, Any], *names: str) -> tuple[dict[str, str | None], list[TextContent] | None]:
    """Sanitize optional record ids, returning (cleaned_by_name, None) or ({}, error_response)."""
    cleaned: dict[str, str | None] = {}
    for name in names:
        value, err = sanitize_record_id(arguments.get(name), name)
        if err:
            return ({}, _error(err, "validation_error"))
        cleaned[name] = value
    return (cleaned, None)


def _validate_capability_name(value: Any) -> tuple[str, list[TextContent] | None]:
    """Sanitize a capability name, returning (cleaned, None) or ("", error_response)."""
    cleaned, err = sanitize_capability_name(value)
    if err:
        return ("", _error(err, "validation_error"))
    return (cleaned, None)
