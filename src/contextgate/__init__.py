"""contextgate: context inference and capability filtering for an agent ticket tracker."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("contextgate")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from contextgate.capabilities import CapabilityDescriptor, CapabilityRegistry
from contextgate.context import Context, ContextType, infer_all_active_contexts, infer_context
from contextgate.core import TrackerDB
from contextgate.filtering import CapabilityFilter, InvalidConfigurationError

__all__ = [
    "CapabilityDescriptor",
    "CapabilityFilter",
    "CapabilityRegistry",
    "Context",
    "ContextType",
    "InvalidConfigurationError",
    "TrackerDB",
    "__version__",
    "infer_all_active_contexts",
    "infer_context",
]
