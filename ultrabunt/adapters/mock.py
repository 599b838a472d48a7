"""
Mock backend — test double for every package-manager backend.

Used by ``--mock`` mode and the test suite to simulate package managers
without touching the system. Keeps an in-memory installed set that
install/remove mutate, and records every call.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

from ultrabunt.adapters.base import BackendAdapter
from ultrabunt.adapters.shell.command import CommandRunner
from ultrabunt.core.models.action import CommandResult
from ultrabunt.core.models.package import Backend


class MockBackend(BackendAdapter):
    """In-memory backend.

    By default every operation succeeds. Individual package ids can be
    configured to fail, and the whole backend can be marked unavailable
    or not ready.
    """

    def __init__(
        self,
        backend: Backend,
        installed: Iterable[str] = (),
        available: bool = True,
        bulk_listed: bool | None = None,
    ):
        super().__init__(CommandRunner())
        self._backend = backend
        self._installed: set[str] = set(installed)
        self._available = available
        self._bulk_listed = backend.is_cached if bulk_listed is None else bulk_listed
        self._failures: dict[str, str] = {}
        self._ready_error: str = ""
        self._lock = threading.Lock()

        self.calls: list[tuple[str, str]] = []     # (operation, backend_id)
        self.probe_calls: list[str] = []
        self.list_calls = 0

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def cli(self) -> str:
        return f"mock-{self._backend.value}"

    @property
    def installed(self) -> set[str]:
        return set(self._installed)

    # ── Configuration ───────────────────────────────────────────

    def set_available(self, available: bool) -> None:
        self._available = available

    def set_failure(self, backend_id: str, error: str = "Mock failure") -> None:
        """Configure operations on a specific package id to fail."""
        self._failures[backend_id] = error

    def set_not_ready(self, error: str = "Mock backend not ready") -> None:
        self._ready_error = error

    def mark_installed(self, backend_id: str, installed: bool = True) -> None:
        """Change state behind the cache's back (an external change)."""
        with self._lock:
            if installed:
                self._installed.add(backend_id)
            else:
                self._installed.discard(backend_id)

    # ── Protocol ────────────────────────────────────────────────

    def is_available(self) -> bool:
        return self._available

    def probe_one(self, backend_id: str) -> bool:
        self.probe_calls.append(backend_id)
        if not self._available:
            return False
        return backend_id in self._installed

    def list_installed(self) -> set[str] | None:
        self.list_calls += 1
        if not (self._available and self._bulk_listed):
            return None
        return set(self._installed)

    def ensure_ready(self, cancel: threading.Event | None = None) -> tuple[bool, str]:
        self.calls.append(("ensure_ready", ""))
        if self._ready_error:
            return False, self._ready_error
        return True, ""

    def install(self, backend_id: str, cancel: threading.Event | None = None) -> CommandResult:
        return self._mutate("install", backend_id, cancel)

    def remove(self, backend_id: str, cancel: threading.Event | None = None) -> CommandResult:
        return self._mutate("remove", backend_id, cancel)

    def refresh_index(self, cancel: threading.Event | None = None) -> CommandResult:
        self.calls.append(("refresh_index", ""))
        return self._ok([self.cli, "refresh"])

    def update_all(self) -> list[CommandResult]:
        self.calls.append(("update_all", ""))
        return [self._ok(["update"])]

    def cleanup(self) -> list[CommandResult]:
        self.calls.append(("cleanup", ""))
        return [self._ok(["cleanup"])]

    @property
    def mutation_count(self) -> int:
        """Number of install/remove calls received."""
        return sum(1 for op, _ in self.calls if op in ("install", "remove"))

    def reset(self) -> None:
        """Clear call logs and configured failures."""
        self.calls.clear()
        self.probe_calls.clear()
        self.list_calls = 0
        self._failures.clear()
        self._ready_error = ""

    # ── Internals ───────────────────────────────────────────────

    def _mutate(self, op: str, backend_id: str, cancel: threading.Event | None) -> CommandResult:
        self.calls.append((op, backend_id))
        cmd = [self.cli, op, backend_id]
        if cancel is not None and cancel.is_set():
            return CommandResult(command=cmd, returncode=-15, cancelled=True)
        if backend_id in self._failures:
            return CommandResult(command=cmd, returncode=1, stderr=self._failures[backend_id])
        self.mark_installed(backend_id, installed=(op == "install"))
        return self._ok(cmd, stdout=f"[mock] {op} {backend_id}")

    @staticmethod
    def _ok(cmd: list[str], stdout: str = "") -> CommandResult:
        return CommandResult(command=cmd, returncode=0, stdout=stdout)
