"""Adapters — tool bindings for external integrations.

Public re-exports for convenient access.
"""

from busybox_ndk.adapters.base import Adapter, ExecutionContext
from busybox_ndk.adapters.mock import MockAdapter
from busybox_ndk.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]
