"""
Backend adapter base — the contract between the dispatcher and package managers.

The cache and dispatcher only talk to package managers through this
interface, never directly to external tools.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod

from ultrabunt.adapters.shell.command import CommandRunner
from ultrabunt.core.models.action import CommandResult
from ultrabunt.core.models.package import Backend


class BackendAdapter(ABC):
    """Abstract base class for package-manager backends.

    Probes answer "is X installed?" and treat an absent CLI as a normal
    "not installed here" outcome. Mutations return CommandResults.
    Adapters NEVER raise for operational failures.

    To create a new backend:
        1. Subclass BackendAdapter
        2. Implement backend, cli, probe_one, install, remove
        3. Register it in the BackendRegistry
    """

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    @property
    @abstractmethod
    def backend(self) -> Backend:
        """Which backend this adapter serves."""

    @property
    @abstractmethod
    def cli(self) -> str:
        """The executable this backend shells out to."""

    def is_available(self) -> bool:
        """Whether the backend's CLI is on PATH. Fast, never raises."""
        return self.runner.which(self.cli) is not None

    @abstractmethod
    def probe_one(self, backend_id: str) -> bool:
        """Live check whether ``backend_id`` is installed."""

    def list_installed(self) -> set[str] | None:
        """Bulk-list everything this backend reports installed.

        Returns:
            The installed ids, or None when the backend could not be
            listed (CLI absent, listing failed, never bulk-listed).
        """
        return None

    def list_all(self) -> set[str]:
        """Like list_installed, with "could not list" folded into an empty set."""
        return self.list_installed() or set()

    def ensure_ready(self, cancel: threading.Event | None = None) -> tuple[bool, str]:
        """Make sure the backend can install packages.

        Returns:
            (is_ready, error_message). error_message is empty if ready.
        """
        if self.is_available():
            return True, ""
        return False, f"{self.cli} is not installed"

    @abstractmethod
    def install(self, backend_id: str, cancel: threading.Event | None = None) -> CommandResult:
        """Install one package."""

    @abstractmethod
    def remove(self, backend_id: str, cancel: threading.Event | None = None) -> CommandResult:
        """Remove one package."""

    def update_all(self) -> list[CommandResult]:
        """Upgrade everything this backend manages."""
        return []

    def cleanup(self) -> list[CommandResult]:
        """Drop caches and unused packages."""
        return []

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} backend={self.backend.value!r}>"
