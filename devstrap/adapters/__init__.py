"""Adapters — bindings to the host's shell, package manager, and git.

Public re-exports for convenient access.
"""

from devstrap.adapters.base import Adapter, ExecutionContext
from devstrap.adapters.mock import MockAdapter
from devstrap.adapters.registry import AdapterRegistry, build_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "build_registry",
]
