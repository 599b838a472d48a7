"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence

import pytest

from ultrabunt.adapters.mock import MockBackend
from ultrabunt.adapters.registry import BackendRegistry
from ultrabunt.adapters.shell.command import CommandRunner
from ultrabunt.core.config.loader import Settings
from ultrabunt.core.context import Services, build_services
from ultrabunt.core.models.action import CommandResult
from ultrabunt.core.models.package import Backend
from ultrabunt.core.services.catalog import Catalog
from ultrabunt.core.services.custom_installers import mock_installers


class FakeRunner(CommandRunner):
    """CommandRunner that records commands and returns scripted results.

    Only executables listed in ``available`` exist; anything else comes
    back as ``missing``. Unscripted commands succeed with no output.
    """

    def __init__(self, available: Iterable[str] = (), root: bool = True):
        super().__init__(timeout=5)
        self.available = set(available)
        self.root = root
        self.calls: list[list[str]] = []
        self._responses: list[tuple[tuple[str, ...], CommandResult]] = []

    @property
    def is_root(self) -> bool:
        return self.root

    def which(self, name: str) -> str | None:
        return f"/usr/bin/{name}" if name in self.available else None

    def respond(self, *prefix: str, stdout: str = "", stderr: str = "", returncode: int = 0) -> None:
        """Script the result for commands starting with ``prefix``."""
        self._responses.append(
            (prefix, CommandResult(returncode=returncode, stdout=stdout, stderr=stderr))
        )

    def run(
        self,
        cmd: Sequence[str],
        *,
        root: bool = False,
        timeout: int | None = None,
        env=None,
        cancel: threading.Event | None = None,
        quiet: bool = False,
    ) -> CommandResult:
        argv = list(cmd)
        self.calls.append(argv)
        if cancel is not None and cancel.is_set():
            return CommandResult(command=argv, returncode=-15, cancelled=True)
        if argv[0] not in self.available:
            return CommandResult.not_found(argv)
        for prefix, result in reversed(self._responses):
            if tuple(argv[: len(prefix)]) == prefix:
                return result.model_copy(update={"command": argv})
        return CommandResult(command=argv, returncode=0)

    def ran(self, *prefix: str) -> bool:
        """Whether any recorded command starts with ``prefix``."""
        return any(tuple(c[: len(prefix)]) == prefix for c in self.calls)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def mock_backends() -> BackendRegistry:
    """One empty MockBackend per non-custom backend."""
    registry = BackendRegistry(mock_mode=True)
    for backend in Backend:
        if backend is not Backend.CUSTOM:
            registry.register(MockBackend(backend))
    return registry


@pytest.fixture
def services(mock_backends: BackendRegistry) -> Services:
    """Builtin catalog over mock backends and mock custom installers."""
    settings = Settings()
    custom = [r.name for r in Catalog.builtin() if r.backend is Backend.CUSTOM]
    return build_services(
        settings,
        excluded=(),
        runner=FakeRunner(),
        backends=mock_backends,
        installers=mock_installers(custom),
    )



@pytest.fixture
def make_runner():
    """Factory for FakeRunners with a given set of executables."""
    return FakeRunner
