"""
Backend registry — one adapter per backend, looked up by the cache and
the dispatcher.

The registry is the single point of backend management. In mock mode
every backend is a MockBackend and nothing touches the system.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ultrabunt.adapters.base import BackendAdapter
from ultrabunt.adapters.languages.cargo import CargoBackend
from ultrabunt.adapters.languages.npm import NodeBootstrap, NpmBackend
from ultrabunt.adapters.mock import MockBackend
from ultrabunt.adapters.packaging.apt import AptBackend
from ultrabunt.adapters.packaging.flatpak import FlatpakBackend
from ultrabunt.adapters.packaging.snap import SnapBackend
from ultrabunt.adapters.shell.command import CommandRunner
from ultrabunt.core.models.package import Backend

logger = logging.getLogger(__name__)


class BackendRegistry:
    """Registry of backend adapters, keyed by Backend."""

    def __init__(self, mock_mode: bool = False):
        self._adapters: dict[Backend, BackendAdapter] = {}
        self._mock_mode = mock_mode

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode

    def register(self, adapter: BackendAdapter) -> None:
        backend = adapter.backend
        if backend is Backend.CUSTOM:
            raise ValueError("custom records are served by the installer registry")
        if backend in self._adapters:
            logger.warning("Overwriting existing backend: %s", backend.value)
        self._adapters[backend] = adapter
        logger.debug("Registered backend: %s", backend.value)

    def get(self, backend: Backend) -> BackendAdapter | None:
        return self._adapters.get(backend)

    def require(self, backend: Backend) -> BackendAdapter:
        adapter = self._adapters.get(backend)
        if adapter is None:
            raise KeyError(f"No adapter registered for backend {backend.value!r}")
        return adapter

    def cached(self) -> list[BackendAdapter]:
        """Adapters for the bulk-listed backends, in Backend order."""
        return [self._adapters[b] for b in Backend.cached() if b in self._adapters]

    def __iter__(self):
        return iter(self._adapters.values())

    def backend_status(self) -> dict[str, dict[str, Any]]:
        """Availability of every registered backend."""
        return {
            backend.value: {
                "cli": adapter.cli,
                "available": adapter.is_available(),
                "cached": backend.is_cached,
            }
            for backend, adapter in self._adapters.items()
        }

    @property
    def apt(self) -> AptBackend:
        return self.require(Backend.APT)  # type: ignore[return-value]


def build_backends(
    runner: CommandRunner,
    *,
    snap_classic: Iterable[str] = (),
    node_bootstrap: NodeBootstrap | None = None,
) -> BackendRegistry:
    """Registry with the real system backends."""
    registry = BackendRegistry()
    apt = AptBackend(runner)
    npm = NpmBackend(runner, bootstrap=node_bootstrap)
    for adapter in (
        apt,
        SnapBackend(runner, apt, classic=snap_classic),
        FlatpakBackend(runner, apt),
        npm,
        CargoBackend(runner),
    ):
        registry.register(adapter)
    return registry


def build_mock_backends(installed: dict[Backend, Iterable[str]] | None = None) -> BackendRegistry:
    """Registry of MockBackends, optionally pre-seeded with installed ids."""
    installed = installed or {}
    registry = BackendRegistry(mock_mode=True)
    for backend in Backend:
        if backend is Backend.CUSTOM:
            continue
        registry.register(MockBackend(backend, installed=installed.get(backend, ())))
    return registry
