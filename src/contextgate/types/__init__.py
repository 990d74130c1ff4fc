# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from core.py, context.py, or filtering.py: this prevents circular imports.
"""Typed return-value contracts for contextgate core and API layers."""

from __future__ import annotations

from contextgate.types.api import (
    CapabilityReport,
    ConsolidationHint,
    ContextVisibility,
    DescriptorDict,
    ErrorResponse,
    FilterResult,
    FilterStatistics,
    RegistryStatistics,
    VisibilityCheck,
)
from contextgate.types.core import (
    ContextDict,
    ContextMetadata,
    ISOTimestamp,
    ProjectConfig,
    ProjectDict,
    SessionDict,
    StateProjection,
    TicketDict,
)

__all__ = [
    "CapabilityReport",
    "ConsolidationHint",
    "ContextDict",
    "ContextMetadata",
    "ContextVisibility",
    "DescriptorDict",
    "ErrorResponse",
    "FilterResult",
    "FilterStatistics",
    "ISOTimestamp",
    "ProjectConfig",
    "ProjectDict",
    "RegistryStatistics",
    "SessionDict",
    "StateProjection",
    "TicketDict",
    "VisibilityCheck",
]
