"""Foundational TypedDicts for snapshot and context to_dict() returns."""

from __future__ import annotations

from typing import NewType, NotRequired, TypedDict

ISOTimestamp = NewType("ISOTimestamp", str)


class ProjectConfig(TypedDict, total=False):
    """Shape of .contextgate/config.json."""

    prefix: str
    version: int


class TicketDict(TypedDict):
    id: str
    title: str
    status: str
    project_id: str | None
    created_at: ISOTimestamp
    updated_at: ISOTimestamp


class SessionDict(TypedDict):
    id: str
    ticket_id: str | None
    project_id: str | None
    started_at: ISOTimestamp
    ended_at: ISOTimestamp | None


class ProjectDict(TypedDict):
    id: str
    name: str
    path: str


class StateProjection(TypedDict):
    """Coarse session-state view consumed by session observability."""

    session_id: str | None
    ticket_id: NotRequired[str]
    current_state: str


class ContextMetadata(TypedDict):
    ticket: NotRequired[TicketDict]
    project: NotRequired[ProjectDict]
    session: NotRequired[SessionDict]
    reason: NotRequired[str]
    review_phase: NotRequired[str]
    readiness_level: NotRequired[str]
    state_projection: StateProjection


class ContextDict(TypedDict):
    type: str
    description: str
    ticket_id: NotRequired[str]
    project_id: NotRequired[str]
    status: NotRequired[str]
    metadata: ContextMetadata
