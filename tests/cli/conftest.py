"""Fixtures for CLI interface tests."""

from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from contextgate.cli import cli
from contextgate.core import CONTEXTGATE_DIR_NAME, DB_FILENAME, TrackerDB


@pytest.fixture
def cli_in_project(tmp_path: Path, cli_runner: CliRunner) -> Generator[tuple[CliRunner, Path], None, None]:
    """Initialize a contextgate project in tmp_path and return (runner, project_root)."""
    original_cwd = os.getcwd()
    os.chdir(str(tmp_path))
    result = cli_runner.invoke(cli, ["init", "--prefix", "test"])
    assert result.exit_code == 0
    yield cli_runner, tmp_path
    os.chdir(original_cwd)


@pytest.fixture
def cli_seeded(cli_in_project: tuple[CliRunner, Path]) -> dict[str, str]:
    """Project with an in_progress ticket (plus a session on it) and an ai_review ticket."""
    _, root = cli_in_project
    with TrackerDB(root / CONTEXTGATE_DIR_NAME / DB_FILENAME, prefix="test") as db:
        project = db.create_project("CLI project", str(root))
        work = db.create_ticket("Build it", project_id=project.id, status="in_progress")
        review = db.create_ticket("Check it", project_id=project.id, status="ai_review")
        session = db.start_session(ticket_id=work.id, project_id=project.id)
    return {"project": project.id, "work": work.id, "review": review.id, "session": session.id}
