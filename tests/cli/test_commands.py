"""CLI tests for context detection, tool filtering, and statistics commands."""

from __future__ import annotations

import json
import os
from pathlib import Path

from click.testing import CliRunner

from contextgate.cli import cli
from contextgate.core import CONTEXTGATE_DIR_NAME, read_config


class TestInit:
    def test_creates_state_dir(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        _, root = cli_in_project
        state_dir = root / CONTEXTGATE_DIR_NAME
        assert state_dir.is_dir()
        assert read_config(state_dir)["prefix"] == "test"

    def test_init_shows_next(self, tmp_path: Path, cli_runner: CliRunner) -> None:
        original = os.getcwd()
        os.chdir(str(tmp_path))
        try:
            result = cli_runner.invoke(cli, ["init"])
            assert result.exit_code == 0
            assert "Next: contextgate filtering on" in result.output
            assert read_config(tmp_path / CONTEXTGATE_DIR_NAME)["prefix"] == tmp_path.name
        finally:
            os.chdir(original)

    def test_init_twice(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 0
        assert "already exists" in result.output

    def test_no_project(self, tmp_path: Path, cli_runner: CliRunner) -> None:
        original = os.getcwd()
        os.chdir(str(tmp_path))
        try:
            result = cli_runner.invoke(cli, ["context"])
            assert result.exit_code == 1
            assert "contextgate init" in result.output
        finally:
            os.chdir(original)


class TestContextCommands:
    def test_context_for_ticket(self, cli_in_project: tuple[CliRunner, Path], cli_seeded: dict[str, str]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["context", "--ticket", cli_seeded["work"]])
        assert result.exit_code == 0
        assert f"ticket_work context: Ticket {cli_seeded['work']} (in_progress)" in result.output
        assert "State: implementing" in result.output

    def test_context_json(self, cli_in_project: tuple[CliRunner, Path], cli_seeded: dict[str, str]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["context", "--ticket", cli_seeded["review"], "--json"])
        data = json.loads(result.output)
        assert data["type"] == "review"
        assert data["ticket_id"] == cli_seeded["review"]

    def test_context_without_ticket(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["context", "--json"])
        assert json.loads(result.output)["type"] == "admin"

    def test_contexts_empty(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["contexts"])
        assert result.exit_code == 0
        assert "No active sessions." in result.output

    def test_contexts_lists_sessions(self, cli_in_project: tuple[CliRunner, Path], cli_seeded: dict[str, str]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["contexts", "--json"])
        data = json.loads(result.output)
        assert len(data) == 1
        assert data[0]["metadata"]["state_projection"]["session_id"] == cli_seeded["session"]


class TestToolsCommand:
    def test_preview_context(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["tools", "--context", "ticket_work", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["context_type"] == "ticket_work"
        assert "list_tickets" in data["visible_capabilities"]
        assert data["enabled"] is False

    def test_shadow_lists_hidden(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["tools", "--context", "review", "--shadow"])
        assert result.exit_code == 0
        assert "Hidden:" in result.output
        assert "delete_project" in result.output.split("Hidden:")[1]

    def test_mode_full_shows_more(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        default = json.loads(runner.invoke(cli, ["tools", "--context", "admin", "--json"]).output)
        full = json.loads(runner.invoke(cli, ["tools", "--context", "admin", "--mode", "full", "--json"]).output)
        assert len(full["visible_capabilities"]) > len(default["visible_capabilities"])

    def test_invalid_context_choice(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["tools", "--context", "deploy"])
        assert result.exit_code != 0

    def test_inferred_from_session(self, cli_in_project: tuple[CliRunner, Path], cli_seeded: dict[str, str]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["tools", "--session", cli_seeded["session"], "--json"])
        assert json.loads(result.output)["context_type"] == "ticket_work"


class TestToolInfo:
    def test_found(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["tool-info", "delete_project"])
        assert result.exit_code == 0
        assert "Priority: 4 (advanced)" in result.output
        assert "Contexts: admin" in result.output

    def test_not_found(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["tool-info", "no_such_tool", "--json"])
        assert result.exit_code == 1
        assert json.loads(result.output) == {"error": "Tool not found: no_such_tool"}


class TestStatsAndReport:
    def test_stats_json(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["stats", "--json"])
        data = json.loads(result.output)
        assert data["registry"]["total_count"] > 0
        assert data["filtering"]["mode"] == "default"

    def test_stats_text(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["stats", "--mode", "strict"])
        assert result.exit_code == 0
        assert "mode: strict" in result.output
        assert "By context (visible/total):" in result.output

    def test_report(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        data = json.loads(runner.invoke(cli, ["report", "--json"]).output)
        assert set(data) == {"registry", "filtering", "by_priority", "consolidation_hints"}


class TestFilteringFlag:
    def test_defaults_to_disabled(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["filtering"])
        assert "Context-aware filtering: disabled" in result.output

    def test_on_persists(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        runner.invoke(cli, ["filtering", "on"])
        assert json.loads(runner.invoke(cli, ["filtering", "--json"]).output) == {"enabled": True}
        tools = json.loads(runner.invoke(cli, ["tools", "--context", "admin", "--json"]).output)
        assert tools["enabled"] is True

    def test_off(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        runner.invoke(cli, ["filtering", "on"])
        result = runner.invoke(cli, ["filtering", "off"])
        assert "Context-aware filtering: disabled" in result.output
