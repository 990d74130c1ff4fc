"""Database schema for the contextgate tracker store.

Only the tables the context engine reads: projects, tickets, conversation
sessions, and the settings row carrying the filtering flag.
"""

from __future__ import annotations

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS projects (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    path        TEXT NOT NULL UNIQUE,
    created_at  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tickets (
    id          TEXT PRIMARY KEY,
    title       TEXT NOT NULL,
    status      TEXT NOT NULL DEFAULT 'backlog',
    project_id  TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_tickets_status ON tickets(status);
CREATE INDEX IF NOT EXISTS idx_tickets_project ON tickets(project_id);

CREATE TABLE IF NOT EXISTS conversation_sessions (
    id          TEXT PRIMARY KEY,
    ticket_id   TEXT REFERENCES tickets(id) ON DELETE SET NULL,
    project_id  TEXT REFERENCES projects(id) ON DELETE SET NULL,
    started_at  TEXT NOT NULL,
    ended_at    TEXT
);

CREATE INDEX IF NOT EXISTS idx_sessions_active ON conversation_sessions(ended_at);

CREATE TABLE IF NOT EXISTS settings (
    id                                   TEXT PRIMARY KEY DEFAULT 'default',
    enable_context_aware_tool_filtering  INTEGER NOT NULL DEFAULT 0,
    updated_at                           TEXT NOT NULL
);
"""

CURRENT_SCHEMA_VERSION = 1
