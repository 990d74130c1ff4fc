"""TypedDicts for filtering engine results and MCP tool responses."""

from __future__ import annotations

from typing import NotRequired, TypedDict

from contextgate.types.core import ContextDict

# ---------------------------------------------------------------------------
# Shared types
# ---------------------------------------------------------------------------


class ErrorResponse(TypedDict):
    """Standard error envelope returned by MCP/CLI error paths."""

    error: str
    code: str


class DescriptorDict(TypedDict):
    name: str
    category: str
    contexts: list[str]
    priority: int
    priority_label: str
    description: str


# ---------------------------------------------------------------------------
# Registry and filtering
# ---------------------------------------------------------------------------


class RegistryStatistics(TypedDict):
    total_count: int
    count_by_category: dict[str, int]
    count_by_context: dict[str, int]
    categories: int


class FilterResult(TypedDict):
    """Result of CapabilityFilter.filter().

    ``hidden_capabilities`` is present only when shadow mode was requested.
    """

    context: ContextDict
    context_type: str
    visible_capabilities: list[str]
    hidden_capabilities: NotRequired[list[str]]
    total_capabilities: int
    reduced_count: int
    reduce_percent: int
    mode: str
    enabled: bool
    shadow_mode: bool


class ContextVisibility(TypedDict):
    visible: int
    total: int


class FilterStatistics(TypedDict):
    enabled: bool
    mode: str
    max_priority: int
    total_capabilities: int
    by_context: dict[str, ContextVisibility]


class ConsolidationHint(TypedDict):
    kind: str
    subject: str
    capabilities: list[str]
    detail: str


class CapabilityReport(TypedDict):
    registry: RegistryStatistics
    filtering: FilterStatistics
    by_priority: dict[str, int]
    consolidation_hints: list[ConsolidationHint]


class VisibilityCheck(TypedDict):
    """Result of CapabilityFilter.explain(): the verdict plus the rule that decided it."""

    name: str
    visible: bool
    reason: str
    context_type: str
    mode: str
    enabled: bool
    descriptor: DescriptorDict
