"""Context inference from ticket and session state.

Classifies what the agent is doing right now (ticket_work, planning, review,
admin) from the active session and the status of the ticket it points at.
Store failures never escape: a lookup that cannot be answered is treated as
"not found" and inference falls through to the admin context.

Status → context:

    in_progress              → ticket_work   (implementing)
    ai_review, human_review  → review        (reviewing)
    backlog, ready           → planning      (planning)
    done                     → admin         (complete)
    no ticket                → admin         (admin)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, TypeVar, assert_never

from contextgate.core import ProjectSnapshot, SessionSnapshot, TicketSnapshot, TicketStatus
from contextgate.db_base import ContextStore, MalformedRecordError, StoreUnavailableError
from contextgate.types.core import ContextDict, ContextMetadata, StateProjection

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class ContextType(StrEnum):
    TICKET_WORK = "ticket_work"
    PLANNING = "planning"
    REVIEW = "review"
    ADMIN = "admin"


# Fallback label for a context with no type; filters exactly like admin.
IDLE_LABEL = "idle"

ALL_CONTEXT_TYPES: tuple[ContextType, ...] = tuple(ContextType)


def resolve_context_type(value: str | ContextType) -> ContextType:
    """Parse a context type name. ``idle`` resolves to admin.

    Raises ValueError for anything outside the four context types.
    """
    if isinstance(value, ContextType):
        return value
    if value == IDLE_LABEL:
        return ContextType.ADMIN
    try:
        return ContextType(value)
    except ValueError:
        valid = ", ".join(c.value for c in ContextType)
        msg = f"Unknown context type '{value}'. Valid types: {valid}"
        raise ValueError(msg) from None


# Coarse session-state labels published in state_projection.current_state.
STATE_IMPLEMENTING = "implementing"
STATE_REVIEWING = "reviewing"
STATE_PLANNING = "planning"
STATE_COMPLETE = "complete"
STATE_ADMIN = "admin"

DESC_TICKET_WORK = "Active ticket implementation"
DESC_REVIEW = "Code review phase"
DESC_PLANNING = "Ticket planning/readiness"
DESC_DONE = "Ticket completed - administrative context"
DESC_ADMIN = "Administrative/setup context"
DESC_FALLBACK = "Administrative/setup context (fallback)"

REASON_NO_ACTIVE_TICKET = "no_active_ticket"
REASON_EXPLICIT = "explicit_context_type"
REASON_INFERENCE_FAILED = "inference_failed"

_PREVIEW_SHAPES: dict[ContextType, tuple[str, str]] = {
    ContextType.TICKET_WORK: (DESC_TICKET_WORK, STATE_IMPLEMENTING),
    ContextType.REVIEW: (DESC_REVIEW, STATE_REVIEWING),
    ContextType.PLANNING: (DESC_PLANNING, STATE_PLANNING),
    ContextType.ADMIN: (DESC_ADMIN, STATE_ADMIN),
}


@dataclass(frozen=True)
class Context:
    """The inferred task phase. Derived on every call, never stored."""

    type: ContextType
    description: str
    current_state: str
    ticket_id: str | None = None
    project_id: str | None = None
    status: str | None = None
    session_id: str | None = None
    ticket: TicketSnapshot | None = None
    project: ProjectSnapshot | None = None
    session: SessionSnapshot | None = None
    reason: str | None = None
    review_phase: str | None = None
    readiness_level: str | None = None

    @classmethod
    def preview(cls, context_type: str | ContextType) -> Context:
        """Context for a caller-supplied type, without reading the store."""
        ctype = resolve_context_type(context_type)
        description, state = _PREVIEW_SHAPES[ctype]
        return cls(type=ctype, description=description, current_state=state, reason=REASON_EXPLICIT)

    @classmethod
    def fallback(cls) -> Context:
        return cls(
            type=ContextType.ADMIN,
            description=DESC_FALLBACK,
            current_state=STATE_ADMIN,
            reason=REASON_INFERENCE_FAILED,
        )

    def state_projection(self) -> StateProjection:
        projection = StateProjection(session_id=self.session_id, current_state=self.current_state)
        if self.ticket_id:
            projection["ticket_id"] = self.ticket_id
        return projection

    def to_dict(self) -> ContextDict:
        metadata = ContextMetadata(state_projection=self.state_projection())
        if self.ticket is not None:
            metadata["ticket"] = self.ticket.to_dict()
        if self.project is not None:
            metadata["project"] = self.project.to_dict()
        if self.session is not None:
            metadata["session"] = self.session.to_dict()
        if self.reason:
            metadata["reason"] = self.reason
        if self.review_phase:
            metadata["review_phase"] = self.review_phase
        if self.readiness_level:
            metadata["readiness_level"] = self.readiness_level

        data = ContextDict(type=self.type.value, description=self.description, metadata=metadata)
        if self.ticket_id:
            data["ticket_id"] = self.ticket_id
            if self.status is not None:
                data["status"] = self.status
        if self.project_id:
            data["project_id"] = self.project_id
        return data


def _try_lookup(operation: str, lookup: Callable[[], _T], default: _T) -> _T:
    """Run a store lookup, absorbing failures as *default* (logged, never raised)."""
    try:
        return lookup()
    except (StoreUnavailableError, MalformedRecordError) as exc:
        logger.debug("%s failed, treating as absent: %s", operation, exc)
    except Exception:
        logger.warning("%s failed unexpectedly, treating as absent", operation, exc_info=True)
    return default


def infer_context(
    store: ContextStore,
    *,
    ticket_id: str | None = None,
    project_id: str | None = None,
    session_id: str | None = None,
) -> Context:
    """Infer the active context from session, ticket, and project state.

    An active session that references a ticket overrides *ticket_id*. A
    ticket's owning project overrides *project_id*. The project is
    descriptive only and never changes the classification.
    """
    active_ticket_id = ticket_id
    session: SessionSnapshot | None = None
    if session_id:
        session = _try_lookup("Session lookup", lambda: store.get_active_session(session_id), None)
        if session is not None and session.ticket_id:
            active_ticket_id = session.ticket_id

    ticket: TicketSnapshot | None = None
    if active_ticket_id:
        tid = active_ticket_id
        ticket = _try_lookup("Ticket lookup", lambda: store.get_ticket(tid), None)

    effective_project_id = (ticket.project_id if ticket is not None else None) or project_id
    project: ProjectSnapshot | None = None
    if effective_project_id:
        pid = effective_project_id
        project = _try_lookup("Project lookup", lambda: store.get_project(pid), None)

    common: dict[str, Any] = {
        "project_id": effective_project_id,
        "session_id": session_id,
        "project": project,
        "session": session,
    }

    if ticket is None:
        return Context(
            type=ContextType.ADMIN,
            description=DESC_ADMIN,
            current_state=STATE_ADMIN,
            reason=REASON_NO_ACTIVE_TICKET,
            **common,
        )

    common.update(ticket_id=ticket.id, status=ticket.status.value, ticket=ticket)
    match ticket.status:
        case TicketStatus.IN_PROGRESS:
            return Context(
                type=ContextType.TICKET_WORK,
                description=DESC_TICKET_WORK,
                current_state=STATE_IMPLEMENTING,
                **common,
            )
        case TicketStatus.AI_REVIEW | TicketStatus.HUMAN_REVIEW:
            return Context(
                type=ContextType.REVIEW,
                description=DESC_REVIEW,
                current_state=STATE_REVIEWING,
                review_phase="automated" if ticket.status is TicketStatus.AI_REVIEW else "manual",
                **common,
            )
        case TicketStatus.BACKLOG | TicketStatus.READY:
            return Context(
                type=ContextType.PLANNING,
                description=DESC_PLANNING,
                current_state=STATE_PLANNING,
                readiness_level="ready_to_work" if ticket.status is TicketStatus.READY else "needs_planning",
                **common,
            )
        case TicketStatus.DONE:
            return Context(
                type=ContextType.ADMIN,
                description=DESC_DONE,
                current_state=STATE_COMPLETE,
                **common,
            )
        case _:
            assert_never(ticket.status)


def infer_all_active_contexts(store: ContextStore) -> list[Context]:
    """One context per active session, in the store's enumeration order.

    A failed session listing yields an empty list, never a partial one.
    """
    sessions = _try_lookup("Active session listing", store.list_active_sessions, [])
    return [
        infer_context(
            store,
            session_id=s.id,
            ticket_id=s.ticket_id,
            project_id=s.project_id,
        )
        for s in sessions
        if s.is_active
    ]


# Capability categories relevant to each context, for category-level gating
# where the full registry is not at hand.
CONTEXT_CATEGORY_MAP: dict[ContextType, frozenset[str]] = {
    ContextType.TICKET_WORK: frozenset({"ticket_work", "code", "testing", "git", "general"}),
    ContextType.PLANNING: frozenset({"planning", "ticket_management", "general"}),
    ContextType.REVIEW: frozenset({"review", "code", "testing", "general"}),
    ContextType.ADMIN: frozenset({"admin", "settings", "general", "project_management"}),
}


def is_context_relevant(context: Context | None, category: str | None) -> bool:
    """True if *category* is relevant to *context*. False when either is missing."""
    if context is None or not category:
        return False
    ctype = resolve_context_type(context.type or IDLE_LABEL)
    return category in CONTEXT_CATEGORY_MAP[ctype]


def summarize(context: Context | None) -> str:
    """One-line, human-readable rendering of a context."""
    if context is None:
        return "Unknown context"
    label = context.type.value
    if context.ticket_id:
        return f"{label} context: Ticket {context.ticket_id} ({context.status}) in project {context.project_id or 'unknown'}"
    if context.project_id:
        return f"{label} context: Project {context.project_id}"
    return f"{label} context: {context.description or 'No active work'}"
