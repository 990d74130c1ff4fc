"""Built-in capability catalog.

Raw descriptor dicts for every tracker capability an agent can invoke.
Parsed and validated by CapabilityRegistry.parse_descriptor at load time.

Contexts: ticket_work (ticket in_progress), planning (backlog/ready),
review (ai_review/human_review), admin (no active ticket, or ticket done).
Priority: 1 critical, 2 important, 3 useful, 4 advanced.
"""

from __future__ import annotations

from typing import Any


def _cap(name: str, category: str, contexts: list[str], priority: int, description: str) -> dict[str, Any]:
    return {
        "name": name,
        "category": category,
        "contexts": contexts,
        "priority": priority,
        "description": description,
    }


BUILTIN_CAPABILITIES: list[dict[str, Any]] = [
    # -- Projects ------------------------------------------------------------
    _cap("list_projects", "project_management", ["admin", "planning"], 2, "List all available projects"),
    _cap("find_project_by_path", "project_management", ["admin"], 3, "Find a project by its file system path"),
    _cap("create_project", "project_management", ["admin"], 2, "Create a new project"),
    _cap("delete_project", "project_management", ["admin"], 4, "Delete a project"),
    # -- Epics ---------------------------------------------------------------
    _cap("list_epics", "ticket_management", ["admin", "planning"], 2, "List all epics in a project"),
    _cap("create_epic", "ticket_management", ["admin", "planning"], 2, "Create a new epic"),
    _cap("update_epic", "ticket_management", ["admin", "planning"], 3, "Update an existing epic"),
    _cap("delete_epic", "ticket_management", ["admin"], 4, "Delete an epic"),
    # -- Tickets -------------------------------------------------------------
    _cap("create_ticket", "ticket_management", ["admin", "planning"], 2, "Create a new ticket"),
    _cap("list_tickets", "ticket_management", ["admin", "planning", "ticket_work"], 1, "List tickets in a project or epic"),
    _cap("list_tickets_by_epic", "ticket_management", ["admin", "planning"], 3, "List all tickets for a specific epic"),
    _cap("update_ticket_status", "ticket_management", ["ticket_work", "review", "planning"], 2, "Update ticket status"),
    _cap(
        "update_acceptance_criterion",
        "ticket_management",
        ["ticket_work", "planning"],
        3,
        "Update acceptance criteria for a ticket",
    ),
    _cap("delete_ticket", "ticket_management", ["admin"], 4, "Delete a ticket"),
    _cap(
        "update_attachment_metadata",
        "ticket_management",
        ["ticket_work"],
        3,
        "Update attachment metadata for a ticket",
    ),
    # -- Comments ------------------------------------------------------------
    _cap("add_ticket_comment", "collaboration", ["ticket_work", "review"], 2, "Add a comment to a ticket"),
    _cap("list_ticket_comments", "collaboration", ["ticket_work", "review", "planning"], 3, "List comments on a ticket"),
    # -- Workflow ------------------------------------------------------------
    _cap("start_ticket_work", "workflow", ["planning"], 1, "Start work on a ticket (move to in_progress)"),
    _cap("start_epic_work", "workflow", ["planning"], 1, "Start work on an epic (with worktree/branch choice)"),
    _cap("complete_ticket_work", "workflow", ["ticket_work"], 1, "Complete ticket implementation and move to ai_review"),
    # -- Git -----------------------------------------------------------------
    _cap("link_commit_to_ticket", "git", ["ticket_work"], 2, "Link a git commit to a ticket"),
    _cap("link_pr_to_ticket", "git", ["ticket_work", "review"], 2, "Link a pull request to a ticket"),
    _cap("sync_ticket_links", "git", ["ticket_work"], 3, "Automatically sync ticket links from git commits"),
    # -- Files ---------------------------------------------------------------
    _cap("link_files_to_ticket", "ticket_management", ["ticket_work"], 3, "Link files to a ticket"),
    _cap("get_tickets_for_file", "ticket_management", ["planning"], 3, "Get tickets linked to a file"),
    # -- Review --------------------------------------------------------------
    _cap("submit_review_finding", "review", ["review"], 1, "Submit a code review finding"),
    _cap("mark_finding_fixed", "review", ["review", "ticket_work"], 2, "Mark a finding as fixed"),
    _cap("check_review_complete", "review", ["review"], 2, "Check if review is complete"),
    _cap("list_review_findings", "review", ["review"], 3, "List review findings for a ticket"),
    # -- Demo and verification -----------------------------------------------
    _cap("generate_demo_script", "review", ["review"], 1, "Generate a demo script for manual testing"),
    _cap("submit_demo_feedback", "review", ["admin"], 1, "Submit demo approval/rejection feedback"),
    _cap("get_demo_script", "review", ["review", "admin"], 2, "Retrieve a demo script"),
    _cap("list_demo_feedback", "review", ["review"], 3, "List demo feedback"),
    # -- Learnings -----------------------------------------------------------
    _cap("extract_learnings", "documentation", ["ticket_work", "review"], 3, "Extract learnings from completed work"),
    _cap("reconcile_learnings", "documentation", ["review"], 3, "Reconcile learnings with project documentation"),
    # -- Agent task list -----------------------------------------------------
    _cap("create_agent_task", "admin", ["admin", "planning"], 3, "Create a task in the agent's task list"),
    _cap("update_agent_task", "admin", ["admin"], 3, "Update an agent task"),
    _cap("list_agent_tasks", "admin", ["admin"], 3, "List agent tasks"),
    _cap("delete_agent_task", "admin", ["admin"], 4, "Delete an agent task"),
    # -- Telemetry -----------------------------------------------------------
    _cap("start_telemetry_session", "admin", ["admin"], 3, "Start a telemetry tracking session"),
    _cap("log_prompt_event", "admin", ["admin"], 4, "Log a prompt event for telemetry"),
    _cap("log_tool_event", "admin", ["admin"], 4, "Log a tool event for telemetry"),
    _cap("end_telemetry_session", "admin", ["admin"], 3, "End a telemetry tracking session"),
    _cap("get_telemetry_summary", "admin", ["admin"], 4, "Get telemetry summary"),
    _cap("list_telemetry_sessions", "admin", ["admin"], 4, "List telemetry sessions"),
    _cap("get_telemetry_session", "admin", ["admin"], 4, "Get specific telemetry session"),
    # -- Conversations and compliance ----------------------------------------
    _cap(
        "start_conversation_session",
        "admin",
        ["admin"],
        3,
        "Start a conversation session for compliance logging",
    ),
    _cap("log_conversation_message", "admin", ["admin"], 4, "Log a conversation message"),
    _cap("end_conversation_session", "admin", ["admin"], 3, "End a conversation session"),
    _cap("list_conversation_sessions", "admin", ["admin"], 4, "List conversation sessions"),
    _cap("export_compliance_logs", "admin", ["admin"], 3, "Export compliance logs"),
    _cap("archive_old_sessions", "admin", ["admin"], 4, "Archive old conversation sessions"),
    # -- Autonomous work sessions --------------------------------------------
    _cap("create_work_session", "workflow", ["ticket_work"], 2, "Create a session for autonomous ticket work"),
    _cap("update_session_state", "workflow", ["ticket_work"], 2, "Update autonomous session state"),
    _cap("complete_work_session", "workflow", ["ticket_work", "review"], 2, "Complete an autonomous work session"),
    _cap("get_session_state", "workflow", ["ticket_work"], 2, "Get autonomous session state"),
    _cap("list_work_sessions", "admin", ["admin"], 3, "List autonomous work sessions"),
    # -- Session events ------------------------------------------------------
    _cap("create_session_event", "admin", ["admin"], 4, "Record an autonomous session event"),
    _cap("list_session_events", "admin", ["admin"], 4, "List autonomous session events"),
    _cap("get_session_event", "admin", ["admin"], 4, "Get a specific autonomous session event"),
    # -- Health and settings -------------------------------------------------
    _cap("get_database_health", "admin", ["admin"], 3, "Check database health"),
    _cap("get_environment_info", "admin", ["admin"], 4, "Get environment information"),
    _cap("update_settings", "admin", ["admin"], 3, "Update application settings"),
    _cap("get_settings", "admin", ["admin", "planning"], 3, "Get application settings"),
    # -- Worktrees -----------------------------------------------------------
    _cap("create_worktree", "admin", ["admin"], 3, "Create a git worktree for an epic"),
    _cap("remove_worktree", "admin", ["admin"], 3, "Remove a git worktree"),
    _cap("list_worktrees", "admin", ["admin"], 3, "List active worktrees"),
    _cap("cleanup_worktrees", "admin", ["admin"], 3, "Cleanup stale worktrees"),
    # -- Context detection ---------------------------------------------------
    _cap(
        "detect_context",
        "workflow",
        ["admin", "planning", "ticket_work", "review"],
        3,
        "Detect the active context",
    ),
    _cap("detect_all_contexts", "admin", ["admin"], 4, "Detect all active contexts"),
    _cap(
        "get_context_summary",
        "workflow",
        ["admin", "planning", "ticket_work", "review"],
        4,
        "Summarize the active context in one line",
    ),
    _cap("is_context_relevant", "admin", ["admin"], 4, "Check whether a capability category fits the active context"),
    # -- Tool filtering ------------------------------------------------------
    _cap("get_filtered_tools", "admin", ["admin"], 3, "List capabilities visible in the active context"),
    _cap("get_tool_metadata", "admin", ["admin"], 4, "Get metadata for one capability"),
    _cap("get_tool_statistics", "admin", ["admin"], 4, "Get registry and filtering statistics"),
    _cap("set_filter_mode", "settings", ["admin"], 3, "Change the capability filter mode"),
    _cap("set_filtering_enabled", "settings", ["admin"], 3, "Enable or disable capability filtering"),
    _cap("check_tool_visibility", "admin", ["admin"], 4, "Check whether one capability is visible"),
]
