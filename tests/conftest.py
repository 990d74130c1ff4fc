"""Shared pytest fixtures for contextgate tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from contextgate.capabilities import CapabilityRegistry
from contextgate.core import CONTEXTGATE_DIR_NAME, TrackerDB
from tests._db_factory import make_db


@pytest.fixture
def db(tmp_path: Path) -> Generator[TrackerDB, None, None]:
    """Fresh TrackerDB for each test."""
    d = make_db(tmp_path)
    yield d
    d.close()


@pytest.fixture
def populated_db(db: TrackerDB) -> TrackerDB:
    """TrackerDB pre-populated with one ticket per status and a set of sessions.

    Creates:
    - project P
    - tickets: backlog, ready, in_progress, ai_review, human_review, done
    - session "work" on the in_progress ticket
    - session "review" on the human_review ticket
    - session "ended" on the ready ticket (ended)
    - session "bare" with a project but no ticket
    """
    project = db.create_project("Project P", "/work/p")
    ids: dict[str, str] = {"project": project.id}
    for status in ("backlog", "ready", "in_progress", "ai_review", "human_review", "done"):
        ids[status] = db.create_ticket(f"Ticket {status}", project_id=project.id, status=status).id

    ids["work"] = db.start_session(ticket_id=ids["in_progress"], project_id=project.id).id
    ids["review"] = db.start_session(ticket_id=ids["human_review"], project_id=project.id).id
    ended = db.start_session(ticket_id=ids["ready"], project_id=project.id)
    db.end_session(ended.id)
    ids["ended"] = ended.id
    ids["bare"] = db.start_session(project_id=project.id).id
    # Store IDs for easy access in tests
    db._test_ids: dict[str, str] = ids  # type: ignore[attr-defined]
    return db


@pytest.fixture(scope="session")
def registry() -> CapabilityRegistry:
    """The shipped capability registry (immutable, shared across tests)."""
    return CapabilityRegistry.builtin()


@pytest.fixture
def contextgate_project(tmp_path: Path) -> Path:
    """A tmp directory set up as a contextgate project (.contextgate/ with config + db).

    Returns the project root (parent of .contextgate/).
    """
    make_db(tmp_path, prefix="proj", in_project=True).close()
    assert (tmp_path / CONTEXTGATE_DIR_NAME).is_dir()
    return tmp_path


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()
