"""Shared CLI helpers.

Provides ``get_db()`` and ``get_filter()`` so command modules can reach the
store and a filter built from it without circular imports.
"""

from __future__ import annotations

import sys

import click

from contextgate.core import CONTEXTGATE_DIR_NAME, DB_FILENAME, TrackerDB, find_contextgate_root, read_config
from contextgate.filtering import DEFAULT_MODE, CapabilityFilter


def get_db() -> TrackerDB:
    """Discover .contextgate/ and return an initialized TrackerDB."""
    try:
        state_dir = find_contextgate_root()
    except FileNotFoundError:
        click.echo(f"No {CONTEXTGATE_DIR_NAME}/ found. Run 'contextgate init' first.", err=True)
        sys.exit(1)
    config = read_config(state_dir)
    db = TrackerDB(state_dir / DB_FILENAME, prefix=config.get("prefix", "cg"))
    db.initialize()
    return db


def get_filter(db: TrackerDB, mode: str | None = None) -> CapabilityFilter:
    """Filter seeded from the persisted flag, as the MCP server builds it."""
    return CapabilityFilter.from_store(db, mode=mode or DEFAULT_MODE)
