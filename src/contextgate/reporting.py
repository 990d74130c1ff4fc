"""Read-only capability report: distribution, filtering effect, consolidation hints.

Operates on the registry and filter policy only; no store access.
"""

from __future__ import annotations

from contextgate.capabilities import PRIORITY_LABELS, CapabilityRegistry
from contextgate.context import ALL_CONTEXT_TYPES
from contextgate.filtering import FILTER_MODES, CapabilityFilter
from contextgate.types.api import CapabilityReport, ConsolidationHint

# A context showing more than this many capabilities under ``permissive``
# is a candidate for splitting or merging tools.
OVERLOAD_THRESHOLD = 20


def priority_distribution(registry: CapabilityRegistry) -> dict[str, int]:
    counts = {label: 0 for label in PRIORITY_LABELS.values()}
    for d in registry:
        counts[d.priority_label] += 1
    return counts


def consolidation_hints(registry: CapabilityRegistry) -> list[ConsolidationHint]:
    """Static consolidation candidates.

    - mostly_advanced: at least half of a category is priority 4, so the
      category is invisible below ``full`` mode for the most part.
    - context_overloaded: a context exceeds OVERLOAD_THRESHOLD capabilities
      under ``permissive``.
    """
    hints: list[ConsolidationHint] = []

    by_category: dict[str, list[str]] = {}
    advanced: dict[str, list[str]] = {}
    for d in registry:
        by_category.setdefault(d.category, []).append(d.name)
        if d.priority == 4:
            advanced.setdefault(d.category, []).append(d.name)

    for category in sorted(by_category):
        names = advanced.get(category, [])
        if names and len(names) * 2 >= len(by_category[category]):
            hints.append(
                ConsolidationHint(
                    kind="mostly_advanced",
                    subject=category,
                    capabilities=sorted(names),
                    detail=f"{len(names)} of {len(by_category[category])} capabilities are advanced-only",
                )
            )

    permissive = FILTER_MODES["permissive"].max_priority
    for ctype in ALL_CONTEXT_TYPES:
        names = registry.list_for_context(ctype, permissive)
        if len(names) > OVERLOAD_THRESHOLD:
            hints.append(
                ConsolidationHint(
                    kind="context_overloaded",
                    subject=ctype.value,
                    capabilities=sorted(names),
                    detail=f"{len(names)} capabilities visible in permissive mode (threshold {OVERLOAD_THRESHOLD})",
                )
            )
    return hints


def build_capability_report(capability_filter: CapabilityFilter) -> CapabilityReport:
    registry = capability_filter.registry
    return CapabilityReport(
        registry=registry.statistics(),
        filtering=capability_filter.statistics(),
        by_priority=priority_distribution(registry),
        consolidation_hints=consolidation_hints(registry),
    )
