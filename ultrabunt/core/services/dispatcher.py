"""
Dispatcher — install or remove one catalog package.

Routes a package name to its backend adapter (or its custom installer),
and turns the outcome into an OperationResult. Never raises for
operational failures: every failure carries an ErrorKind plus the
backend's captured output.

Flow for install:
    1. Catalog lookup                     → not_found
    2. Declared dependency installed?     → dependency_missing (no backend call)
    3. Backend readiness / index refresh  → backend_unavailable
    4. Backend primitive or custom installer
    5. On success only: cache.update_one(record)
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Literal

from ultrabunt.adapters.registry import BackendRegistry
from ultrabunt.core.models.action import CommandResult, ErrorKind, OperationResult
from ultrabunt.core.models.package import Backend, PackageRecord
from ultrabunt.core.services.cache import ContextFactory, InstalledSetCache
from ultrabunt.core.services.catalog import Catalog
from ultrabunt.core.services.custom_installers import CustomInstallerRegistry

logger = logging.getLogger(__name__)

Action = Literal["install", "remove"]


class Dispatcher:
    """Install/remove entry point shared by the CLI, the menu and the web API."""

    def __init__(
        self,
        catalog: Catalog,
        cache: InstalledSetCache,
        backends: BackendRegistry,
        installers: CustomInstallerRegistry,
        make_context: ContextFactory,
    ):
        self.catalog = catalog
        self.cache = cache
        self.backends = backends
        self.installers = installers
        self._make_context = make_context

    # ── Public API ──────────────────────────────────────────────

    def install(self, name: str, cancel: threading.Event | None = None) -> OperationResult:
        """Install the named package."""
        start = time.monotonic()
        record = self.catalog.get(name)
        if record is None:
            return self._fail(name, "install", ErrorKind.NOT_FOUND, f"Unknown package: {name}", start)

        if record.dependency:
            dep = self.catalog.get(record.dependency)
            if dep is None or not self.cache.is_installed(dep):
                return self._fail(
                    name, "install", ErrorKind.DEPENDENCY_MISSING,
                    f"{name} requires {record.dependency}. Install {record.dependency} first.",
                    start,
                )

        logger.info("Installing %s (%s: %s)", name, record.backend.value, record.backend_id)
        if record.backend is Backend.CUSTOM:
            return self._run_custom(record, "install", cancel, start)

        adapter = self.backends.get(record.backend)
        if adapter is None:
            return self._fail(
                name, "install", ErrorKind.BACKEND_UNAVAILABLE,
                f"No {record.backend.value} backend registered", start,
            )

        if record.backend is Backend.APT:
            if not adapter.is_available():
                return self._fail(
                    name, "install", ErrorKind.BACKEND_UNAVAILABLE,
                    "apt is not available on this system", start,
                )
            refreshed = adapter.refresh_index(cancel=cancel)  # type: ignore[attr-defined]
            if refreshed.cancelled:
                return self._fail(name, "install", ErrorKind.CANCELLED, "Cancelled", start)
        else:
            ready, error = adapter.ensure_ready(cancel=cancel)
            if cancel is not None and cancel.is_set():
                return self._fail(name, "install", ErrorKind.CANCELLED, "Cancelled", start)
            if not ready:
                return self._fail(name, "install", ErrorKind.BACKEND_UNAVAILABLE, error, start)

        return self._finish(record, "install", adapter.install(record.backend_id, cancel=cancel), start)

    def remove(self, name: str, cancel: threading.Event | None = None) -> OperationResult:
        """Remove the named package.

        Installed records that declare it as their dependency are
        reported in ``dependents`` and logged; they do not block removal.
        """
        start = time.monotonic()
        record = self.catalog.get(name)
        if record is None:
            return self._fail(name, "remove", ErrorKind.NOT_FOUND, f"Unknown package: {name}", start)

        dependents = self.installed_dependents(name)
        if dependents:
            logger.warning(
                "Removing %s, which installed packages depend on: %s",
                name, ", ".join(dependents),
            )

        logger.info("Removing %s (%s: %s)", name, record.backend.value, record.backend_id)
        if record.backend is Backend.CUSTOM:
            result = self._run_custom(record, "remove", cancel, start)
        else:
            adapter = self.backends.get(record.backend)
            if adapter is None or not adapter.is_available():
                return self._fail(
                    name, "remove", ErrorKind.BACKEND_UNAVAILABLE,
                    f"{record.backend.value} is not available on this system", start,
                    dependents=dependents,
                )
            result = self._finish(record, "remove", adapter.remove(record.backend_id, cancel=cancel), start)

        result.dependents = dependents
        return result

    def installed_dependents(self, name: str) -> list[str]:
        """Names of installed records whose dependency is ``name``."""
        return [r.name for r in self.catalog.dependents_of(name) if self.cache.is_installed(r)]

    def is_installed(self, name: str) -> bool:
        record = self.catalog.get(name)
        return record is not None and self.cache.is_installed(record)

    # ── Internals ───────────────────────────────────────────────

    def _run_custom(
        self,
        record: PackageRecord,
        action: Action,
        cancel: threading.Event | None,
        start: float,
    ) -> OperationResult:
        installer = self.installers.get(record.name)
        if installer is None:
            return self._fail(
                record.name, action, ErrorKind.UNKNOWN_CUSTOM_INSTALLER,
                f"No custom installer registered for {record.name}", start,
            )
        ctx = self._make_context(cancel)
        r = installer.install(ctx) if action == "install" else installer.remove(ctx)
        result = self._finish(record, action, r, start)
        if result.ok and action == "install" and installer.note:
            result.note = installer.note
        return result

    def _finish(
        self,
        record: PackageRecord,
        action: Action,
        r: CommandResult,
        start: float,
    ) -> OperationResult:
        """Map a backend CommandResult to an OperationResult."""
        if r.ok:
            self.cache.update_one(record)
            result = OperationResult.success(
                record.name, action, output=r.output, duration_ms=_elapsed(start),
            )
            logger.info("%s %s: success", action.capitalize(), record.name)
            return result

        if r.cancelled:
            kind = ErrorKind.CANCELLED
        elif r.missing:
            kind = ErrorKind.BACKEND_UNAVAILABLE
        else:
            kind = ErrorKind.BACKEND_COMMAND_FAILED
        if r.output:
            logger.error("%s %s output:\n%s", action.capitalize(), record.name, r.output)
        return self._fail(record.name, action, kind, r.describe_failure(), start, output=r.output)

    @staticmethod
    def _fail(
        name: str,
        action: Action,
        kind: ErrorKind,
        error: str,
        start: float,
        **kwargs,
    ) -> OperationResult:
        logger.error("%s %s failed [%s]: %s", action.capitalize(), name, kind.value, error)
        return OperationResult.failure(name, action, kind, error, duration_ms=_elapsed(start), **kwargs)


def _elapsed(start: float) -> int:
    return int((time.monotonic() - start) * 1000)

