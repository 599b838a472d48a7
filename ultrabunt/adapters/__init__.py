"""Adapters — package-manager bindings.

Public re-exports for convenient access.
"""

from ultrabunt.adapters.base import BackendAdapter
from ultrabunt.adapters.mock import MockBackend
from ultrabunt.adapters.registry import BackendRegistry, build_backends, build_mock_backends

__all__ = [
    "BackendAdapter",
    "BackendRegistry",
    "MockBackend",
    "build_backends",
    "build_mock_backends",
]
