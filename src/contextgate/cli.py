"""Operator CLI for contextgate.

Convention-based: discovers .contextgate/ by walking up from cwd.

Usage:
    contextgate init                               # Initialize .contextgate/ in cwd
    contextgate context --ticket <id>              # Detect context for a ticket
    contextgate context --session <id>             # Detect context for a session
    contextgate contexts                           # Contexts of all active sessions
    contextgate tools --context review --shadow    # Filtered tool list (with hidden tools)
    contextgate tool-info <name>                   # Metadata for one tool
    contextgate stats                              # Registry and filtering statistics
    contextgate report                             # Statistics plus consolidation hints
    contextgate filtering on|off                   # Persist the filtering flag
"""

from __future__ import annotations

import json as json_mod
import sys
from pathlib import Path

import click

from contextgate import __version__
from contextgate.cli_common import get_db, get_filter
from contextgate.context import ALL_CONTEXT_TYPES, infer_all_active_contexts, infer_context, summarize
from contextgate.core import CONTEXTGATE_DIR_NAME, DB_FILENAME, TrackerDB, read_config, write_config
from contextgate.filtering import FILTER_MODES
from contextgate.reporting import build_capability_report

_CONTEXT_CHOICES = [c.value for c in ALL_CONTEXT_TYPES]


def _fail(message: str, as_json: bool) -> None:
    if as_json:
        click.echo(json_mod.dumps({"error": message}))
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="contextgate")
def cli() -> None:
    """contextgate: context inference and capability filtering for agents."""


@cli.command()
@click.option("--prefix", default=None, help="ID prefix for records (default: directory name)")
def init(prefix: str | None) -> None:
    """Initialize .contextgate/ in the current directory."""
    cwd = Path.cwd()
    state_dir = cwd / CONTEXTGATE_DIR_NAME

    if state_dir.exists():
        click.echo(f"{CONTEXTGATE_DIR_NAME}/ already exists in {cwd}")
        # Still ensure DB is initialized
        config = read_config(state_dir)
        with TrackerDB(state_dir / DB_FILENAME, prefix=config.get("prefix", "cg")) as db:
            db.initialize()
        return

    prefix = prefix or cwd.name
    state_dir.mkdir()
    write_config(state_dir, {"prefix": prefix, "version": 1})

    with TrackerDB(state_dir / DB_FILENAME, prefix=prefix) as db:
        db.initialize()

    click.echo(f"Initialized {CONTEXTGATE_DIR_NAME}/ in {cwd}")
    click.echo(f"  Prefix: {prefix}")
    click.echo(f"  Database: {state_dir / DB_FILENAME}")
    click.echo("\nNext: contextgate filtering on")


@cli.command()
@click.option("--ticket", "ticket_id", default=None, help="Ticket ID")
@click.option("--project", "project_id", default=None, help="Project ID (used when no ticket is found)")
@click.option("--session", "session_id", default=None, help="Conversation session ID")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def context(ticket_id: str | None, project_id: str | None, session_id: str | None, as_json: bool) -> None:
    """Detect the active context."""
    with get_db() as db:
        ctx = infer_context(db, ticket_id=ticket_id, project_id=project_id, session_id=session_id)
        if as_json:
            click.echo(json_mod.dumps(ctx.to_dict(), indent=2, default=str))
            return
        click.echo(summarize(ctx))
        click.echo(f"  State: {ctx.current_state}")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def contexts(as_json: bool) -> None:
    """Show the context of every active session."""
    with get_db() as db:
        found = infer_all_active_contexts(db)
        if as_json:
            click.echo(json_mod.dumps([c.to_dict() for c in found], indent=2, default=str))
            return
        if not found:
            click.echo("No active sessions.")
            return
        for c in found:
            click.echo(f"{c.session_id}  {summarize(c)}")


@cli.command()
@click.option("--context", "context_type", type=click.Choice(_CONTEXT_CHOICES), default=None, help="Context to preview")
@click.option("--mode", type=click.Choice(list(FILTER_MODES)), default=None, help="Filter mode (default: default)")
@click.option("--ticket", "ticket_id", default=None, help="Ticket ID for detection")
@click.option("--session", "session_id", default=None, help="Session ID for detection")
@click.option("--shadow", is_flag=True, help="Also list hidden tools")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def tools(
    context_type: str | None,
    mode: str | None,
    ticket_id: str | None,
    session_id: str | None,
    shadow: bool,
    as_json: bool,
) -> None:
    """List the tools visible in a context."""
    with get_db() as db:
        result = get_filter(db, mode).filter(
            context_type=context_type,
            ticket_id=ticket_id,
            session_id=session_id,
            shadow_mode=shadow,
        )
    if as_json:
        click.echo(json_mod.dumps(result, indent=2, default=str))
        return
    click.echo(f"Context: {result['context_type']}")
    click.echo(f"Visible: {len(result['visible_capabilities'])}/{result['total_capabilities']}")
    click.echo(f"Reduction: {result['reduced_count']} hidden ({result['reduce_percent']}%)")
    click.echo(f"Mode: {result['mode']}")
    if not result["enabled"]:
        click.echo("Filtering is disabled: agents see every tool (preview shown)")
    click.echo("")
    for name in result["visible_capabilities"]:
        click.echo(f"  {name}")
    if shadow:
        click.echo("\nHidden:")
        for name in result.get("hidden_capabilities", []):
            click.echo(f"  {name}")


@cli.command("tool-info")
@click.argument("name")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def tool_info(name: str, as_json: bool) -> None:
    """Show metadata for one tool."""
    with get_db() as db:
        descriptor = get_filter(db).registry.get_descriptor(name)
    if descriptor is None:
        _fail(f"Tool not found: {name}", as_json)
        return
    data = descriptor.to_dict()
    if as_json:
        click.echo(json_mod.dumps(data, indent=2))
        return
    click.echo(f"Tool: {data['name']}")
    click.echo(f"Description: {data['description']}")
    click.echo(f"Category: {data['category']}")
    click.echo(f"Priority: {data['priority']} ({data['priority_label']})")
    click.echo(f"Contexts: {', '.join(data['contexts'])}")


@cli.command()
@click.option("--mode", type=click.Choice(list(FILTER_MODES)), default=None, help="Filter mode (default: default)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(mode: str | None, as_json: bool) -> None:
    """Show tool counts and per-context visibility."""
    with get_db() as db:
        capability_filter = get_filter(db, mode)
    registry_stats = capability_filter.registry.statistics()
    filter_stats = capability_filter.statistics()
    if as_json:
        click.echo(json_mod.dumps({"registry": registry_stats, "filtering": filter_stats}, indent=2))
        return
    click.echo(f"Total tools: {registry_stats['total_count']} in {registry_stats['categories']} categories")
    click.echo(f"Filtering: {'enabled' if filter_stats['enabled'] else 'disabled'} (mode: {filter_stats['mode']})")
    click.echo("\nBy category:")
    for category, count in sorted(registry_stats["count_by_category"].items()):
        click.echo(f"  {category}: {count}")
    click.echo("\nBy context (visible/total):")
    for ctype, counts in filter_stats["by_context"].items():
        click.echo(f"  {ctype}: {counts['visible']}/{counts['total']}")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def report(as_json: bool) -> None:
    """Statistics plus consolidation hints."""
    with get_db() as db:
        data = build_capability_report(get_filter(db))
    if as_json:
        click.echo(json_mod.dumps(data, indent=2))
        return
    click.echo("By priority:")
    for label, count in data["by_priority"].items():
        click.echo(f"  {label}: {count}")
    hints = data["consolidation_hints"]
    if not hints:
        click.echo("\nNo consolidation hints.")
        return
    click.echo("\nConsolidation hints:")
    for hint in hints:
        click.echo(f"  [{hint['kind']}] {hint['subject']}: {hint['detail']}")


@cli.command()
@click.argument("state", type=click.Choice(["on", "off"]), required=False)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def filtering(state: str | None, as_json: bool) -> None:
    """Show or persist the context-aware filtering flag.

    Takes effect the next time the MCP server starts.
    """
    with get_db() as db:
        if state is not None:
            db.set_tool_filtering_enabled(state == "on")
        enabled = db.get_tool_filtering_enabled()
    if as_json:
        click.echo(json_mod.dumps({"enabled": enabled}))
        return
    click.echo(f"Context-aware filtering: {'enabled' if enabled else 'disabled'}")
