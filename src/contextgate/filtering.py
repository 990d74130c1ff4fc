"""Context-aware capability filtering.

Decides which registered capabilities an agent should see for a context.
A filter mode sets the priority threshold; ``always_show`` and
``never_show`` override it per name, with deny applied last so a name in
both sets stays hidden. Shadow mode also reports the hidden complement
without changing what is visible.

The policy lives in memory for the lifetime of the process. Only the
``enabled`` flag is seeded from storage (see ``CapabilityFilter.from_store``);
nothing here is written back.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass

from contextgate.capabilities import CapabilityRegistry
from contextgate.context import ALL_CONTEXT_TYPES, Context, ContextType, infer_context
from contextgate.db_base import ContextStore, FilterSettingsStore
from contextgate.types.api import ContextVisibility, FilterResult, FilterStatistics, VisibilityCheck
from contextgate.validation import sanitize_capability_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterModeInfo:
    name: str
    max_priority: int
    description: str


FILTER_MODES: dict[str, FilterModeInfo] = {
    "strict": FilterModeInfo("strict", 1, "Critical tools only"),
    "default": FilterModeInfo("default", 2, "Critical and important tools"),
    "permissive": FilterModeInfo("permissive", 3, "Critical, important, and useful tools"),
    "full": FilterModeInfo("full", 4, "All tools"),
}

DEFAULT_MODE = "default"

# Always visible so an agent can inspect (and repair) its own visibility.
BOOTSTRAP_ALWAYS_SHOW: frozenset[str] = frozenset({"detect_context", "detect_all_contexts"})


# Rules reported by CapabilityFilter.explain(), in evaluation order.
REASON_DISABLED = "filtering_disabled"
REASON_NEVER_SHOW = "never_show"
REASON_ALWAYS_SHOW = "always_show"
REASON_OTHER_CONTEXT = "not_relevant_to_context"
REASON_ABOVE_THRESHOLD = "priority_above_mode_threshold"
REASON_IN_CONTEXT = "relevant_to_context"


class InvalidConfigurationError(ValueError):
    """Raised when a policy change would leave the filter in an undefined state."""


@dataclass(frozen=True)
class PolicySnapshot:
    """Consistent view of the policy taken under the filter's lock."""

    enabled: bool
    mode: str
    max_priority: int
    always_show: frozenset[str]
    never_show: frozenset[str]

    def apply(self, base: Iterable[str]) -> set[str]:
        """Union with always_show, then subtract never_show (deny wins)."""
        visible = set(base) | self.always_show
        visible -= self.never_show
        return visible


def _round_half_up_percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return (part * 200 + whole) // (2 * whole)


class CapabilityFilter:
    """Process-wide filtering policy over a capability registry.

    Construct one per process and pass it to whatever serves requests.
    Reads take a PolicySnapshot and mutators hold the same lock, so a
    request never sees half of a mode change.
    """

    def __init__(
        self,
        store: ContextStore,
        *,
        registry: CapabilityRegistry | None = None,
        enabled: bool = True,
        mode: str = DEFAULT_MODE,
        always_show: Iterable[str] = (),
        never_show: Iterable[str] = (),
    ) -> None:
        self._store = store
        self.registry = registry if registry is not None else CapabilityRegistry.builtin()
        self._lock = threading.Lock()
        self._enabled = self._check_enabled(enabled)
        self._mode_info = self._check_mode(mode)
        self._always_show: set[str] = {self._check_name(n) for n in always_show}
        # Only registered names, so visible and hidden still partition the registry.
        self._always_show |= {n for n in BOOTSTRAP_ALWAYS_SHOW if n in self.registry}
        self._never_show: set[str] = {self._check_name(n) for n in never_show}
        logger.debug("Capability filtering initialized: mode=%s, enabled=%s", self._mode_info.name, self._enabled)

    @classmethod
    def from_store(
        cls,
        store: FilterSettingsStore,
        *,
        registry: CapabilityRegistry | None = None,
        mode: str = DEFAULT_MODE,
        always_show: Iterable[str] = (),
        never_show: Iterable[str] = (),
    ) -> CapabilityFilter:
        """Build the filter with ``enabled`` seeded once from the persisted flag."""
        enabled = bool(store.get_tool_filtering_enabled())
        logger.info("Capability filtering engine initialized (enabled=%s)", enabled)
        return cls(
            store,
            registry=registry,
            enabled=enabled,
            mode=mode,
            always_show=always_show,
            never_show=never_show,
        )

    # -- Validation ------------------------------------------------------------

    @staticmethod
    def _check_mode(mode: object) -> FilterModeInfo:
        info = FILTER_MODES.get(mode) if isinstance(mode, str) else None
        if info is None:
            valid = ", ".join(FILTER_MODES)
            msg = f"Invalid filter mode: {mode!r}. Valid modes: {valid}"
            raise InvalidConfigurationError(msg)
        return info

    @staticmethod
    def _check_enabled(enabled: object) -> bool:
        if not isinstance(enabled, bool):
            msg = f"enabled must be a boolean, got {type(enabled).__name__}"
            raise InvalidConfigurationError(msg)
        return enabled

    def _check_name(self, name: object) -> str:
        cleaned, err = sanitize_capability_name(name)
        if err:
            raise InvalidConfigurationError(err)
        if cleaned not in self.registry:
            msg = f"Unknown capability: {cleaned}"
            raise InvalidConfigurationError(msg)
        return cleaned

    # -- Policy state ----------------------------------------------------------

    def snapshot(self) -> PolicySnapshot:
        with self._lock:
            return PolicySnapshot(
                enabled=self._enabled,
                mode=self._mode_info.name,
                max_priority=self._mode_info.max_priority,
                always_show=frozenset(self._always_show),
                never_show=frozenset(self._never_show),
            )

    @property
    def enabled(self) -> bool:
        with self._lock:
            return self._enabled

    @property
    def mode(self) -> str:
        with self._lock:
            return self._mode_info.name

    @property
    def max_priority(self) -> int:
        with self._lock:
            return self._mode_info.max_priority

    # -- Queries ---------------------------------------------------------------

    def _resolve_context(
        self,
        context_type: str | ContextType | None,
        ticket_id: str | None,
        session_id: str | None,
    ) -> Context:
        if context_type is not None:
            return Context.preview(context_type)
        try:
            return infer_context(self._store, ticket_id=ticket_id, session_id=session_id)
        except Exception:
            logger.error("Failed to infer context for capability filtering", exc_info=True)
            return Context.fallback()

    def filter(
        self,
        *,
        context_type: str | ContextType | None = None,
        ticket_id: str | None = None,
        session_id: str | None = None,
        shadow_mode: bool = False,
    ) -> FilterResult:
        """Compute the visible capability set for a context.

        An explicit *context_type* skips inference (preview without live
        state). Raises ValueError for an unknown *context_type*.
        """
        context = self._resolve_context(context_type, ticket_id, session_id)
        return self._filter_with(self.snapshot(), context, shadow_mode=shadow_mode)

    def _filter_with(self, policy: PolicySnapshot, context: Context, *, shadow_mode: bool) -> FilterResult:
        base = self.registry.list_for_context(context.type, policy.max_priority)
        visible = sorted(policy.apply(base))
        total = len(self.registry)
        reduced = total - len(visible)

        result = FilterResult(
            context=context.to_dict(),
            context_type=context.type.value,
            visible_capabilities=visible,
            total_capabilities=total,
            reduced_count=reduced,
            reduce_percent=_round_half_up_percent(reduced, total),
            mode=policy.mode,
            enabled=policy.enabled,
            shadow_mode=shadow_mode,
        )
        if shadow_mode:
            shown = set(visible)
            result["hidden_capabilities"] = sorted(n for n in self.registry.names() if n not in shown)
        return result

    def is_visible(
        self,
        name: str,
        *,
        context_type: str | ContextType | None = None,
        ticket_id: str | None = None,
        session_id: str | None = None,
    ) -> bool:
        """Whether *name* is visible. Always True while filtering is disabled."""
        policy = self.snapshot()
        if not policy.enabled:
            return True
        if name in policy.never_show:
            return False
        if name in policy.always_show:
            return True
        context = self._resolve_context(context_type, ticket_id, session_id)
        result = self._filter_with(policy, context, shadow_mode=False)
        return name in result["visible_capabilities"]

    def explain(
        self,
        name: str,
        *,
        context_type: str | ContextType | None = None,
        ticket_id: str | None = None,
        session_id: str | None = None,
    ) -> VisibilityCheck:
        """Visibility of a registered capability and the rule that decided it.

        Raises KeyError if *name* is not registered.
        """
        descriptor = self.registry.get_descriptor(name)
        if descriptor is None:
            msg = f"Unknown capability: {name}"
            raise KeyError(msg)
        policy = self.snapshot()
        context = self._resolve_context(context_type, ticket_id, session_id)

        if not policy.enabled:
            visible, reason = True, REASON_DISABLED
        elif name in policy.never_show:
            visible, reason = False, REASON_NEVER_SHOW
        elif name in policy.always_show:
            visible, reason = True, REASON_ALWAYS_SHOW
        elif context.type not in descriptor.contexts:
            visible, reason = False, REASON_OTHER_CONTEXT
        elif descriptor.priority > policy.max_priority:
            visible, reason = False, REASON_ABOVE_THRESHOLD
        else:
            visible, reason = True, REASON_IN_CONTEXT

        return VisibilityCheck(
            name=name,
            visible=visible,
            reason=reason,
            context_type=context.type.value,
            mode=policy.mode,
            enabled=policy.enabled,
            descriptor=descriptor.to_dict(),
        )

    def statistics(self) -> FilterStatistics:
        """Per-context visible/total counts from the registry and current policy.

        Independent of store contents: no ticket or session is consulted.
        """
        policy = self.snapshot()
        by_context: dict[str, ContextVisibility] = {}
        for ctype in ALL_CONTEXT_TYPES:
            base = self.registry.list_for_context(ctype, policy.max_priority)
            by_context[ctype.value] = ContextVisibility(
                visible=len(policy.apply(base)),
                total=len(base),
            )
        return FilterStatistics(
            enabled=policy.enabled,
            mode=policy.mode,
            max_priority=policy.max_priority,
            total_capabilities=len(self.registry),
            by_context=by_context,
        )

    # -- Mutators --------------------------------------------------------------

    def set_mode(self, mode: str) -> None:
        """Change the filter mode. Unknown modes raise and leave the policy untouched."""
        info = self._check_mode(mode)
        with self._lock:
            self._mode_info = info
        logger.info("Capability filtering mode changed to: %s", info.name)

    def set_enabled(self, enabled: bool) -> None:
        checked = self._check_enabled(enabled)
        with self._lock:
            self._enabled = checked
        logger.info("Capability filtering %s", "enabled" if checked else "disabled")

    def add_always_show(self, name: str) -> bool:
        checked = self._check_name(name)
        with self._lock:
            if checked in self._always_show:
                return False
            self._always_show.add(checked)
        logger.info("Added %s to always_show", checked)
        return True

    def remove_always_show(self, name: str) -> bool:
        checked = self._check_name(name)
        if checked in BOOTSTRAP_ALWAYS_SHOW:
            msg = f"Cannot remove '{checked}' from always_show: context inspection must stay visible"
            raise InvalidConfigurationError(msg)
        with self._lock:
            if checked not in self._always_show:
                return False
            self._always_show.discard(checked)
        logger.info("Removed %s from always_show", checked)
        return True

    def add_never_show(self, name: str) -> bool:
        checked = self._check_name(name)
        with self._lock:
            if checked in self._never_show:
                return False
            self._never_show.add(checked)
        logger.info("Added %s to never_show", checked)
        return True

    def remove_never_show(self, name: str) -> bool:
        checked = self._check_name(name)
        with self._lock:
            if checked not in self._never_show:
                return False
            self._never_show.discard(checked)
        logger.info("Removed %s from never_show", checked)
        return True
