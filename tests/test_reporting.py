"""Tests for the capability report and consolidation hints."""

from __future__ import annotations

from typing import Any

from contextgate.capabilities import CapabilityRegistry
from contextgate.core import TrackerDB
from contextgate.filtering import CapabilityFilter
from contextgate.reporting import OVERLOAD_THRESHOLD, build_capability_report, consolidation_hints, priority_distribution


def _cap(name: str, category: str, priority: int, contexts: list[str] | None = None) -> dict[str, Any]:
    return {"name": name, "category": category, "contexts": contexts or ["admin"], "priority": priority}


class TestPriorityDistribution:
    def test_all_labels_present(self) -> None:
        reg = CapabilityRegistry.from_dicts([_cap("a", "x", 1), _cap("b", "x", 1), _cap("c", "y", 4)])
        assert priority_distribution(reg) == {"critical": 2, "important": 0, "useful": 0, "advanced": 1}

    def test_builtin_sums_to_total(self, registry: CapabilityRegistry) -> None:
        assert sum(priority_distribution(registry).values()) == len(registry)


class TestConsolidationHints:
    def test_mostly_advanced_at_half(self) -> None:
        reg = CapabilityRegistry.from_dicts(
            [
                _cap("telemetry_a", "telemetry", 4),
                _cap("telemetry_b", "telemetry", 2),
                _cap("core_a", "core", 4),
                _cap("core_b", "core", 1),
                _cap("core_c", "core", 1),
            ]
        )
        hints = consolidation_hints(reg)
        assert [(h["kind"], h["subject"]) for h in hints] == [("mostly_advanced", "telemetry")]
        assert hints[0]["capabilities"] == ["telemetry_a"]
        assert "1 of 2" in hints[0]["detail"]

    def test_context_overloaded(self) -> None:
        caps = [_cap(f"tool_{i:02d}", "general", 3, ["review"]) for i in range(OVERLOAD_THRESHOLD + 1)]
        hints = consolidation_hints(CapabilityRegistry.from_dicts(caps))
        overloaded = [h for h in hints if h["kind"] == "context_overloaded"]
        assert [h["subject"] for h in overloaded] == ["review"]
        assert len(overloaded[0]["capabilities"]) == OVERLOAD_THRESHOLD + 1

    def test_at_threshold_is_not_overloaded(self) -> None:
        caps = [_cap(f"tool_{i:02d}", "general", 3, ["review"]) for i in range(OVERLOAD_THRESHOLD)]
        assert consolidation_hints(CapabilityRegistry.from_dicts(caps)) == []

    def test_advanced_only_ignored_for_overload(self) -> None:
        caps = [_cap(f"tool_{i:02d}", f"cat_{i:02d}", 4, ["review"]) for i in range(OVERLOAD_THRESHOLD + 5)]
        kinds = {h["kind"] for h in consolidation_hints(CapabilityRegistry.from_dicts(caps))}
        assert "context_overloaded" not in kinds

    def test_empty_registry(self) -> None:
        assert consolidation_hints(CapabilityRegistry([])) == []


class TestBuildReport:
    def test_sections(self, db: TrackerDB, registry: CapabilityRegistry) -> None:
        f = CapabilityFilter(db, registry=registry, mode="strict")
        report = build_capability_report(f)
        assert report["registry"] == registry.statistics()
        assert report["filtering"]["mode"] == "strict"
        assert sum(report["by_priority"].values()) == len(registry)
        assert isinstance(report["consolidation_hints"], list)

    def test_builtin_flags_admin_overload(self, db: TrackerDB, registry: CapabilityRegistry) -> None:
        report = build_capability_report(CapabilityFilter(db, registry=registry))
        subjects = {h["subject"] for h in report["consolidation_hints"] if h["kind"] == "context_overloaded"}
        assert "admin" in subjects
