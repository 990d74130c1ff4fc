"""Fixtures for MCP server tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from contextgate.core import TrackerDB
from contextgate.filtering import CapabilityFilter
from tests._db_factory import make_db


@pytest.fixture
def mcp_db(tmp_path: Path) -> Generator[TrackerDB, None, None]:
    """Set up a TrackerDB plus an enabled CapabilityFilter and patch the MCP module globals."""
    d = make_db(tmp_path, prefix="mcp", in_project=True)

    import contextgate.mcp_server as mcp_mod

    original_db = mcp_mod.db
    original_filter = mcp_mod.capability_filter
    mcp_mod.db = d
    mcp_mod.capability_filter = CapabilityFilter(d, enabled=True)

    yield d

    mcp_mod.db = original_db
    mcp_mod.capability_filter = original_filter
    d.close()


@pytest.fixture
def mcp_filter(mcp_db: TrackerDB) -> CapabilityFilter:
    """The filter instance the MCP handlers are currently using."""
    import contextgate.mcp_server as mcp_mod

    assert mcp_mod.capability_filter is not None
    return mcp_mod.capability_filter


@pytest.fixture
def seeded(mcp_db: TrackerDB) -> dict[str, str]:
    """One project, an in_progress and an ai_review ticket, a session on the first."""
    project = mcp_db.create_project("MCP project", "/mcp")
    work = mcp_db.create_ticket("Implement", project_id=project.id, status="in_progress")
    review = mcp_db.create_ticket("Review me", project_id=project.id, status="ai_review")
    session = mcp_db.start_session(ticket_id=work.id, project_id=project.id)
    return {"project": project.id, "work": work.id, "review": review.id, "session": session.id}
