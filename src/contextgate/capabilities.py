"""Capability registry -- parsing, validation, and context lookups.

Every capability the agent can invoke is described once: its category, the
contexts it belongs to, and a priority tier. The registry is static data;
all queries are pure functions over it. Descriptors are validated when the
registry is built so a bad entry fails at import-time use, not mid-request.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from contextgate.context import ALL_CONTEXT_TYPES, ContextType, resolve_context_type
from contextgate.types.api import DescriptorDict, RegistryStatistics
from contextgate.validation import CAPABILITY_NAME_PATTERN

logger = logging.getLogger(__name__)

MIN_PRIORITY = 1
MAX_PRIORITY = 4

PRIORITY_LABELS: dict[int, str] = {
    1: "critical",
    2: "important",
    3: "useful",
    4: "advanced",
}


@dataclass(frozen=True)
class CapabilityDescriptor:
    """One invocable capability and where it belongs."""

    name: str
    category: str
    contexts: frozenset[ContextType]
    priority: int
    description: str = ""

    def __post_init__(self) -> None:
        if not CAPABILITY_NAME_PATTERN.match(self.name):
            msg = f"Invalid capability name '{self.name}': must match ^[a-z][a-z0-9_]{{0,63}}$"
            raise ValueError(msg)
        if not self.category or not self.category.strip():
            msg = f"Capability '{self.name}': category must not be empty"
            raise ValueError(msg)
        if not self.contexts:
            msg = f"Capability '{self.name}': contexts must not be empty"
            raise ValueError(msg)
        for ctx in self.contexts:
            if not isinstance(ctx, ContextType):
                msg = f"Capability '{self.name}': context {ctx!r} is not a ContextType"
                raise ValueError(msg)
        if isinstance(self.priority, bool) or not isinstance(self.priority, int) or not (MIN_PRIORITY <= self.priority <= MAX_PRIORITY):
            msg = f"Capability '{self.name}': priority must be an integer {MIN_PRIORITY}-{MAX_PRIORITY}, got {self.priority!r}"
            raise ValueError(msg)

    @property
    def priority_label(self) -> str:
        return PRIORITY_LABELS[self.priority]

    def applies_to(self, context_type: ContextType, max_priority: int) -> bool:
        return context_type in self.contexts and self.priority <= max_priority

    def to_dict(self) -> DescriptorDict:
        return DescriptorDict(
            name=self.name,
            category=self.category,
            # Declaration order of ContextType, so output is stable.
            contexts=[c.value for c in ALL_CONTEXT_TYPES if c in self.contexts],
            priority=self.priority,
            priority_label=self.priority_label,
            description=self.description,
        )


class CapabilityRegistry:
    """Ordered, name-unique catalog of capability descriptors."""

    def __init__(self, descriptors: Iterable[CapabilityDescriptor]) -> None:
        self._by_name: dict[str, CapabilityDescriptor] = {}
        for d in descriptors:
            if d.name in self._by_name:
                msg = f"Duplicate capability name '{d.name}'"
                raise ValueError(msg)
            self._by_name[d.name] = d
        logger.debug("Capability registry loaded with %d descriptors", len(self._by_name))

    @classmethod
    def builtin(cls) -> CapabilityRegistry:
        """The registry built from the shipped catalog."""
        from contextgate.capabilities_data import BUILTIN_CAPABILITIES

        return cls.from_dicts(BUILTIN_CAPABILITIES)

    @classmethod
    def from_dicts(cls, raw: Iterable[dict[str, Any]]) -> CapabilityRegistry:
        return cls(cls.parse_descriptor(entry) for entry in raw)

    @staticmethod
    def parse_descriptor(raw: dict[str, Any]) -> CapabilityDescriptor:
        """Parse a descriptor from a JSON-compatible dict.

        Raises:
            ValueError: If a field is invalid or a context name is unknown.
            KeyError: If a required key is missing.
        """
        name = raw["name"]
        raw_contexts = raw["contexts"]
        if not isinstance(raw_contexts, list | tuple | set | frozenset):
            msg = f"Capability '{name}': 'contexts' must be a list, got {type(raw_contexts).__name__}"
            raise ValueError(msg)
        contexts: set[ContextType] = set()
        for value in raw_contexts:
            try:
                ctype = ContextType(value)
            except ValueError:
                msg = f"Capability '{name}': unknown context '{value}'"
                raise ValueError(msg) from None
            contexts.add(ctype)
        return CapabilityDescriptor(
            name=name,
            category=raw["category"],
            contexts=frozenset(contexts),
            priority=raw["priority"],
            description=raw.get("description", ""),
        )

    # -- Queries -------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._by_name)

    def __iter__(self) -> Iterator[CapabilityDescriptor]:
        return iter(self._by_name.values())

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def names(self) -> list[str]:
        return list(self._by_name)

    def get_descriptor(self, name: str) -> CapabilityDescriptor | None:
        return self._by_name.get(name)

    def list_for_context(self, context_type: str | ContextType, max_priority: int) -> list[str]:
        """Names declaring *context_type* with priority <= *max_priority*, in registry order."""
        ctype = resolve_context_type(context_type)
        return [d.name for d in self._by_name.values() if d.applies_to(ctype, max_priority)]

    def statistics(self) -> RegistryStatistics:
        """Counts per category and per context in a single pass.

        A descriptor counts once for its category and once for every
        context it declares.
        """
        by_category: dict[str, int] = {}
        by_context: dict[str, int] = {c.value: 0 for c in ALL_CONTEXT_TYPES}
        for d in self._by_name.values():
            by_category[d.category] = by_category.get(d.category, 0) + 1
            for ctx in d.contexts:
                by_context[ctx.value] += 1
        return RegistryStatistics(
            total_count=len(self._by_name),
            count_by_category=by_category,
            count_by_context=by_context,
            categories=len(by_category),
        )
