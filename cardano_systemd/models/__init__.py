"""Data models for unit files and service lifecycle dispatch."""

from .service import BatchResult, DispatchOutcome, LifecycleAction, ServiceDescriptor, unit_filename
from .unit_file import PropertyValue, UnitFile, ValueKind

__all__ = [
    "BatchResult",
    "DispatchOutcome",
    "LifecycleAction",
    "PropertyValue",
    "ServiceDescriptor",
    "UnitFile",
    "ValueKind",
    "unit_filename",
]
