"""Tracker store: the SQLite collaborator the context engine reads from.

Holds projects, tickets, conversation sessions, and the settings row that
carries the persisted tool-filtering flag. Ticket status transition rules
live in the ticket workflow, not here; this module only stores and returns
snapshots.

Convention-based discovery: each project has a `.contextgate/` directory
containing `contextgate.db` (SQLite) and `config.json` (id prefix, version).
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from contextgate.db_base import MalformedRecordError, StoreUnavailableError, _now_iso
from contextgate.db_schema import CURRENT_SCHEMA_VERSION, SCHEMA_SQL
from contextgate.types.core import ISOTimestamp, ProjectConfig, ProjectDict, SessionDict, TicketDict

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Project discovery and config
# ---------------------------------------------------------------------------

CONTEXTGATE_DIR_NAME = ".contextgate"
DB_FILENAME = "contextgate.db"
CONFIG_FILENAME = "config.json"


def find_contextgate_root(start: Path | None = None) -> Path:
    """Walk up from start (default cwd) looking for .contextgate/ directory.

    Returns the .contextgate/ directory path (not the project root).
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        candidate = parent / CONTEXTGATE_DIR_NAME
        if candidate.is_dir():
            return candidate
    msg = f"No {CONTEXTGATE_DIR_NAME}/ directory found in {current} or any parent"
    raise FileNotFoundError(msg)


def read_config(state_dir: Path) -> ProjectConfig:
    """Read .contextgate/config.json. Returns defaults if missing or corrupt."""
    defaults = ProjectConfig(prefix="cg", version=1)
    config_path = state_dir / CONFIG_FILENAME
    if not config_path.exists():
        return defaults
    try:
        result = json.loads(config_path.read_text())
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read %s, using defaults: %s", config_path, exc)
        return defaults
    if not isinstance(result, dict):
        logger.warning("Config %s is not a JSON object, using defaults", config_path)
        return defaults
    config: ProjectConfig = {**defaults, **result}  # type: ignore[typeddict-item]
    return config


def write_config(state_dir: Path, config: dict[str, Any] | ProjectConfig) -> None:
    """Write .contextgate/config.json."""
    config_path = state_dir / CONFIG_FILENAME
    config_path.write_text(json.dumps(config, indent=2) + "\n")


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


class TicketStatus(StrEnum):
    BACKLOG = "backlog"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    AI_REVIEW = "ai_review"
    HUMAN_REVIEW = "human_review"
    DONE = "done"


VALID_TICKET_STATUSES: frozenset[str] = frozenset(s.value for s in TicketStatus)


@dataclass(frozen=True)
class TicketSnapshot:
    id: str
    title: str
    status: TicketStatus
    project_id: str | None = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> TicketDict:
        return TicketDict(
            id=self.id,
            title=self.title,
            status=self.status.value,
            project_id=self.project_id,
            created_at=ISOTimestamp(self.created_at),
            updated_at=ISOTimestamp(self.updated_at),
        )


@dataclass(frozen=True)
class SessionSnapshot:
    id: str
    started_at: str
    ticket_id: str | None = None
    project_id: str | None = None
    ended_at: str | None = None

    @property
    def is_active(self) -> bool:
        return self.ended_at is None

    def to_dict(self) -> SessionDict:
        return SessionDict(
            id=self.id,
            ticket_id=self.ticket_id,
            project_id=self.project_id,
            started_at=ISOTimestamp(self.started_at),
            ended_at=ISOTimestamp(self.ended_at) if self.ended_at is not None else None,
        )


@dataclass(frozen=True)
class ProjectSnapshot:
    id: str
    name: str
    path: str = ""

    def to_dict(self) -> ProjectDict:
        return ProjectDict(id=self.id, name=self.name, path=self.path)


# ---------------------------------------------------------------------------
# TrackerDB
# ---------------------------------------------------------------------------


class TrackerDB:
    """Direct SQLite store implementing the ContextStore read Protocol."""

    def __init__(
        self,
        db_path: str | Path,
        *,
        prefix: str = "cg",
        check_same_thread: bool = True,
    ) -> None:
        self.db_path = Path(db_path)
        self.prefix = prefix
        self._conn: sqlite3.Connection | None = None
        self._check_same_thread = check_same_thread

    @classmethod
    def from_project(cls, project_path: Path | None = None) -> TrackerDB:
        """Create a TrackerDB by discovering .contextgate/ from project_path (or cwd)."""
        state_dir = find_contextgate_root(project_path)
        config = read_config(state_dir)
        db = cls(state_dir / DB_FILENAME, prefix=config.get("prefix", "cg"))
        db.initialize()
        return db

    def __enter__(self) -> TrackerDB:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                isolation_level="DEFERRED",
                check_same_thread=self._check_same_thread,
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.execute("PRAGMA busy_timeout=5000")
        return self._conn

    def initialize(self) -> None:
        """Create tables on a fresh database and make sure the settings row exists."""
        if self.get_schema_version() == 0:
            self.conn.executescript(SCHEMA_SQL)
            self.conn.execute(f"PRAGMA user_version = {CURRENT_SCHEMA_VERSION}")
        self.conn.execute(
            "INSERT OR IGNORE INTO settings (id, enable_context_aware_tool_filtering, updated_at) VALUES ('default', 0, ?)",
            (_now_iso(),),
        )
        self.conn.commit()

    def get_schema_version(self) -> int:
        """Return the current schema version from PRAGMA user_version."""
        result: int = self.conn.execute("PRAGMA user_version").fetchone()[0]
        return result

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _generate_unique_id(self, table: str, infix: str = "") -> str:
        """Generate a unique ID using O(1) EXISTS checks against the PK index.

        *table* is always a hardcoded literal at the call site (never user input).
        """
        sep = f"-{infix}-" if infix else "-"
        for _ in range(10):
            candidate = f"{self.prefix}{sep}{uuid.uuid4().hex[:10]}"
            if self.conn.execute(f"SELECT 1 FROM {table} WHERE id = ?", (candidate,)).fetchone() is None:
                return candidate
        return f"{self.prefix}{sep}{uuid.uuid4().hex[:16]}"

    # -- Guarded reads -------------------------------------------------------

    def _fetchone(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Row | None:
        try:
            row: sqlite3.Row | None = self.conn.execute(sql, params).fetchone()
        except sqlite3.Error as exc:
            msg = f"Store query failed: {exc}"
            raise StoreUnavailableError(msg) from exc
        return row

    def _fetchall(self, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        try:
            rows: list[sqlite3.Row] = self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            msg = f"Store query failed: {exc}"
            raise StoreUnavailableError(msg) from exc
        return rows

    @staticmethod
    def _require(row: sqlite3.Row, table: str, *columns: str) -> None:
        for col in columns:
            if row[col] is None:
                raise MalformedRecordError(table, str(row["id"]), f"column '{col}' is null")

    def _build_ticket(self, row: sqlite3.Row) -> TicketSnapshot:
        self._require(row, "tickets", "id", "status")
        raw_status = row["status"]
        if raw_status not in VALID_TICKET_STATUSES:
            raise MalformedRecordError("tickets", row["id"], f"unknown status '{raw_status}'")
        return TicketSnapshot(
            id=row["id"],
            title=row["title"] or "",
            status=TicketStatus(raw_status),
            project_id=row["owning_project_id"],
            created_at=row["created_at"] or "",
            updated_at=row["updated_at"] or "",
        )

    def _build_session(self, row: sqlite3.Row) -> SessionSnapshot:
        self._require(row, "conversation_sessions", "id", "started_at")
        return SessionSnapshot(
            id=row["id"],
            started_at=row["started_at"],
            ticket_id=row["ticket_id"],
            project_id=row["project_id"],
            ended_at=row["ended_at"],
        )

    # -- ContextStore --------------------------------------------------------

    def get_ticket(self, ticket_id: str) -> TicketSnapshot | None:
        """Return the ticket joined with its owning project id, or None."""
        row = self._fetchone(
            "SELECT t.*, p.id AS owning_project_id FROM tickets t "
            "LEFT JOIN projects p ON t.project_id = p.id WHERE t.id = ? LIMIT 1",
            (ticket_id,),
        )
        if row is None:
            return None
        return self._build_ticket(row)

    def get_active_session(self, session_id: str) -> SessionSnapshot | None:
        """Return the session only while it has not ended."""
        row = self._fetchone(
            "SELECT * FROM conversation_sessions WHERE id = ? AND ended_at IS NULL LIMIT 1",
            (session_id,),
        )
        if row is None:
            return None
        return self._build_session(row)

    def list_active_sessions(self) -> list[SessionSnapshot]:
        """Return every session without an end timestamp, in insertion order."""
        rows = self._fetchall("SELECT * FROM conversation_sessions WHERE ended_at IS NULL ORDER BY rowid")
        return [self._build_session(r) for r in rows]

    def get_project(self, project_id: str) -> ProjectSnapshot | None:
        row = self._fetchone("SELECT * FROM projects WHERE id = ? LIMIT 1", (project_id,))
        if row is None:
            return None
        self._require(row, "projects", "id", "name")
        return ProjectSnapshot(id=row["id"], name=row["name"], path=row["path"] or "")

    # -- Persisted filtering flag ---------------------------------------------

    def get_tool_filtering_enabled(self) -> bool:
        """Read the persisted context-aware filtering flag. Any failure reads as disabled."""
        try:
            row = self._fetchone("SELECT enable_context_aware_tool_filtering FROM settings WHERE id = 'default' LIMIT 1")
        except StoreUnavailableError:
            logger.warning("Could not read context-aware filtering setting, disabling filtering", exc_info=True)
            return False
        if row is None or row[0] is None:
            return False
        return bool(row[0])

    def set_tool_filtering_enabled(self, enabled: bool) -> None:
        self.conn.execute(
            "INSERT INTO settings (id, enable_context_aware_tool_filtering, updated_at) VALUES ('default', ?, ?) "
            "ON CONFLICT(id) DO UPDATE SET enable_context_aware_tool_filtering = excluded.enable_context_aware_tool_filtering, "
            "updated_at = excluded.updated_at",
            (1 if enabled else 0, _now_iso()),
        )
        self.conn.commit()

    # -- Seeding helpers -----------------------------------------------------

    def create_project(self, name: str, path: str) -> ProjectSnapshot:
        if not name or not name.strip():
            msg = "Project name cannot be empty"
            raise ValueError(msg)
        project_id = self._generate_unique_id("projects", "proj")
        self.conn.execute(
            "INSERT INTO projects (id, name, path, created_at) VALUES (?, ?, ?, ?)",
            (project_id, name.strip(), path, _now_iso()),
        )
        self.conn.commit()
        return ProjectSnapshot(id=project_id, name=name.strip(), path=path)

    def create_ticket(self, title: str, *, project_id: str, status: str = "backlog") -> TicketSnapshot:
        if not title or not title.strip():
            msg = "Title cannot be empty"
            raise ValueError(msg)
        self._validate_status(status)
        if self.get_project(project_id) is None:
            msg = f"Project not found: {project_id}"
            raise KeyError(msg)
        ticket_id = self._generate_unique_id("tickets")
        now = _now_iso()
        self.conn.execute(
            "INSERT INTO tickets (id, title, status, project_id, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?)",
            (ticket_id, title.strip(), status, project_id, now, now),
        )
        self.conn.commit()
        return self._get_ticket_or_raise(ticket_id)

    def set_ticket_status(self, ticket_id: str, status: str) -> TicketSnapshot:
        """Overwrite a ticket's status. Transition validity is the workflow's concern."""
        self._validate_status(status)
        self._get_ticket_or_raise(ticket_id)
        self.conn.execute(
            "UPDATE tickets SET status = ?, updated_at = ? WHERE id = ?",
            (status, _now_iso(), ticket_id),
        )
        self.conn.commit()
        return self._get_ticket_or_raise(ticket_id)

    def start_session(self, *, ticket_id: str | None = None, project_id: str | None = None) -> SessionSnapshot:
        session_id = self._generate_unique_id("conversation_sessions", "session")
        self.conn.execute(
            "INSERT INTO conversation_sessions (id, ticket_id, project_id, started_at) VALUES (?, ?, ?, ?)",
            (session_id, ticket_id, project_id, _now_iso()),
        )
        self.conn.commit()
        session = self.get_active_session(session_id)
        if session is None:
            msg = f"Session not found after insert: {session_id}"
            raise KeyError(msg)
        return session

    def end_session(self, session_id: str) -> SessionSnapshot:
        row = self._fetchone("SELECT * FROM conversation_sessions WHERE id = ?", (session_id,))
        if row is None:
            msg = f"Session not found: {session_id}"
            raise KeyError(msg)
        if row["ended_at"] is not None:
            return self._build_session(row)
        self.conn.execute(
            "UPDATE conversation_sessions SET ended_at = ? WHERE id = ?",
            (_now_iso(), session_id),
        )
        self.conn.commit()
        ended = self._fetchone("SELECT * FROM conversation_sessions WHERE id = ?", (session_id,))
        assert ended is not None
        return self._build_session(ended)

    @staticmethod
    def _validate_status(status: str) -> None:
        if status not in VALID_TICKET_STATUSES:
            msg = f"Unknown ticket status '{status}'. Valid statuses: {', '.join(s.value for s in TicketStatus)}"
            raise ValueError(msg)

    def _get_ticket_or_raise(self, ticket_id: str) -> TicketSnapshot:
        ticket = self.get_ticket(ticket_id)
        if ticket is None:
            msg = f"Ticket not found: {ticket_id}"
            raise KeyError(msg)
        return ticket
