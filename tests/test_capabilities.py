"""Tests for the capability registry and its built-in catalog."""

from __future__ import annotations

from typing import Any

import pytest

from contextgate.capabilities import PRIORITY_LABELS, CapabilityDescriptor, CapabilityRegistry
from contextgate.capabilities_data import BUILTIN_CAPABILITIES
from contextgate.context import ContextType


def _raw(name: str = "sample_tool", **overrides: Any) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "name": name,
        "category": "general",
        "contexts": ["admin"],
        "priority": 2,
        "description": "Sample",
    }
    raw.update(overrides)
    return raw


def _registry(*entries: dict[str, Any]) -> CapabilityRegistry:
    return CapabilityRegistry.from_dicts(entries)


class TestDescriptorValidation:
    def test_valid(self) -> None:
        d = CapabilityRegistry.parse_descriptor(_raw())
        assert d.contexts == frozenset({ContextType.ADMIN})
        assert d.priority_label == "important"

    @pytest.mark.parametrize("name", ["", "Upper", "1tool", "has-dash", "a" * 65])
    def test_bad_name(self, name: str) -> None:
        with pytest.raises(ValueError, match="Invalid capability name"):
            CapabilityRegistry.parse_descriptor(_raw(name))

    def test_name_at_max_length(self) -> None:
        assert CapabilityRegistry.parse_descriptor(_raw("a" * 64)).name == "a" * 64

    @pytest.mark.parametrize("priority", [0, 5, "2", True, 2.0])
    def test_bad_priority(self, priority: object) -> None:
        with pytest.raises(ValueError, match="priority"):
            CapabilityRegistry.parse_descriptor(_raw(priority=priority))

    def test_unknown_context(self) -> None:
        with pytest.raises(ValueError, match="unknown context 'deploy'"):
            CapabilityRegistry.parse_descriptor(_raw(contexts=["admin", "deploy"]))

    def test_idle_is_not_a_declarable_context(self) -> None:
        with pytest.raises(ValueError, match="unknown context"):
            CapabilityRegistry.parse_descriptor(_raw(contexts=["idle"]))

    def test_empty_contexts(self) -> None:
        with pytest.raises(ValueError, match="contexts must not be empty"):
            CapabilityRegistry.parse_descriptor(_raw(contexts=[]))

    def test_contexts_must_be_list(self) -> None:
        with pytest.raises(ValueError, match="must be a list"):
            CapabilityRegistry.parse_descriptor(_raw(contexts="admin"))

    def test_empty_category(self) -> None:
        with pytest.raises(ValueError, match="category"):
            CapabilityRegistry.parse_descriptor(_raw(category="  "))

    def test_missing_key(self) -> None:
        raw = _raw()
        del raw["priority"]
        with pytest.raises(KeyError):
            CapabilityRegistry.parse_descriptor(raw)

    def test_direct_construction_rejects_raw_strings(self) -> None:
        with pytest.raises(ValueError, match="not a ContextType"):
            CapabilityDescriptor("x", "general", frozenset({"admin"}), 1)  # type: ignore[arg-type]

    def test_duplicate_names_rejected(self) -> None:
        with pytest.raises(ValueError, match="Duplicate"):
            _registry(_raw("dup"), _raw("dup"))


class TestRegistryQueries:
    def test_get_descriptor(self) -> None:
        reg = _registry(_raw("alpha"))
        assert reg.get_descriptor("alpha") is not None
        assert reg.get_descriptor("missing") is None

    def test_list_for_context_requires_context_and_priority(self) -> None:
        reg = _registry(
            _raw("a", contexts=["ticket_work"], priority=1),
            _raw("b", contexts=["ticket_work"], priority=3),
            _raw("c", contexts=["review"], priority=1),
        )
        assert reg.list_for_context(ContextType.TICKET_WORK, 2) == ["a"]
        assert reg.list_for_context("ticket_work", 3) == ["a", "b"]

    def test_list_for_context_keeps_registry_order(self) -> None:
        reg = _registry(_raw("zeta"), _raw("alpha"), _raw("mid"))
        assert reg.list_for_context("admin", 4) == ["zeta", "alpha", "mid"]

    def test_list_for_idle_matches_admin(self, registry: CapabilityRegistry) -> None:
        assert registry.list_for_context("idle", 4) == registry.list_for_context("admin", 4)

    def test_list_for_unknown_context_raises(self, registry: CapabilityRegistry) -> None:
        with pytest.raises(ValueError, match="Unknown context type"):
            registry.list_for_context("deploy", 4)

    def test_statistics_counts_each_declared_context(self) -> None:
        reg = _registry(
            _raw("a", category="git", contexts=["ticket_work", "review"]),
            _raw("b", category="git", contexts=["review"]),
            _raw("c", category="admin", contexts=["admin"]),
        )
        stats = reg.statistics()
        assert stats["total_count"] == 3
        assert stats["count_by_category"] == {"git": 2, "admin": 1}
        assert stats["count_by_context"] == {"ticket_work": 1, "planning": 0, "review": 2, "admin": 1}
        assert stats["categories"] == 2

    def test_empty_registry(self) -> None:
        reg = CapabilityRegistry([])
        assert len(reg) == 0
        assert reg.statistics()["count_by_context"]["admin"] == 0

    def test_to_dict_orders_contexts(self) -> None:
        d = CapabilityRegistry.parse_descriptor(_raw(contexts=["admin", "ticket_work", "review"]))
        assert d.to_dict()["contexts"] == ["ticket_work", "review", "admin"]


class TestBuiltinCatalog:
    def test_loads(self, registry: CapabilityRegistry) -> None:
        assert len(registry) == len(BUILTIN_CAPABILITIES)

    def test_every_context_has_capabilities(self, registry: CapabilityRegistry) -> None:
        for ctype in ContextType:
            assert registry.list_for_context(ctype, 4), ctype

    def test_every_priority_tier_used(self, registry: CapabilityRegistry) -> None:
        assert {d.priority for d in registry} == set(PRIORITY_LABELS)

    def test_bootstrap_capabilities_registered(self, registry: CapabilityRegistry) -> None:
        assert "detect_context" in registry
        assert "detect_all_contexts" in registry

    def test_list_tickets_descriptor(self, registry: CapabilityRegistry) -> None:
        d = registry.get_descriptor("list_tickets")
        assert d is not None
        assert d.priority == 1
        assert ContextType.TICKET_WORK in d.contexts

    def test_link_files_descriptor(self, registry: CapabilityRegistry) -> None:
        d = registry.get_descriptor("link_files_to_ticket")
        assert d is not None
        assert d.priority == 3
        assert d.contexts == frozenset({ContextType.TICKET_WORK})

    def test_statistics_total_matches_sum_of_categories(self, registry: CapabilityRegistry) -> None:
        stats = registry.statistics()
        assert sum(stats["count_by_category"].values()) == stats["total_count"]
