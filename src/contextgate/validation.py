"""Shared validation functions for all entry points.

Pure functions, no MCP or Click dependencies.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any

# Capability names double as MCP tool names.
CAPABILITY_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]{0,63}$")
_MAX_ID_LENGTH = 128


def sanitize_capability_name(value: Any) -> tuple[str, str | None]:
    """Validate a capability name supplied by a caller.

    Returns (name, None) on success or ("", error_message) on failure.
    Surrounding whitespace is stripped; the remainder must match
    ``^[a-z][a-z0-9_]{0,63}$``.
    """
    if not isinstance(value, str):
        return ("", "capability name must be a string")
    cleaned = value.strip()
    if not cleaned:
        return ("", "capability name must not be empty")
    if not CAPABILITY_NAME_PATTERN.match(cleaned):
        return ("", f"invalid capability name '{cleaned}': must match ^[a-z][a-z0-9_]{{0,63}}$")
    return (cleaned, None)


def sanitize_record_id(value: Any, name: str) -> tuple[str | None, str | None]:
    """Validate an optional ticket/project/session id.

    Returns (None, None) for a missing value, (cleaned, None) on success,
    or (None, error_message) on failure.
    """
    if value is None:
        return (None, None)
    if not isinstance(value, str):
        return (None, f"{name} must be a string")
    # Reject "\nid" rather than silently absorbing the newline via strip().
    for ch in value:
        if unicodedata.category(ch).startswith("C"):
            return (None, f"{name} must not contain control characters (found U+{ord(ch):04X})")
    cleaned = value.strip()
    if not cleaned:
        return (None, None)
    if len(cleaned) > _MAX_ID_LENGTH:
        return (None, f"{name} must be at most {_MAX_ID_LENGTH} characters")
    return (cleaned, None)
