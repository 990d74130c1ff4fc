"""Shared utilities, error types, and the read Protocol for context stores."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from contextgate.core import ProjectSnapshot, SessionSnapshot, TicketSnapshot


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class StoreUnavailableError(RuntimeError):
    """Raised when the backing store cannot answer a lookup (locked, table missing, closed)."""


class MalformedRecordError(ValueError):
    """Raised when a row exists but does not have the shape a snapshot needs."""

    def __init__(self, table: str, record_id: str, problem: str) -> None:
        self.table = table
        self.record_id = record_id
        self.problem = problem
        super().__init__(f"Malformed {table} row '{record_id}': {problem}")


class ContextStore(Protocol):
    """Read interface the inference engine consumes.

    Lookups return ``None`` for absent records. Implementations may raise
    StoreUnavailableError or MalformedRecordError; inference absorbs both.
    """

    def get_ticket(self, ticket_id: str) -> TicketSnapshot | None: ...

    def get_active_session(self, session_id: str) -> SessionSnapshot | None: ...

    def list_active_sessions(self) -> list[SessionSnapshot]: ...

    def get_project(self, project_id: str) -> ProjectSnapshot | None: ...


class FilterSettingsStore(ContextStore, Protocol):
    """A ContextStore that also carries the persisted filtering flag."""

    def get_tool_filtering_enabled(self) -> bool: ...
