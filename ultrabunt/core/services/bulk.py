"""
Bulk operations — many packages, or every backend, in one go.

Category and selection installs go through the Dispatcher one package
at a time; one failure never stops the batch. Update and cleanup run
each available backend's maintenance commands, then rebuild the cache.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from ultrabunt.core.context import Services
from ultrabunt.core.models.action import CommandResult, OperationResult
from ultrabunt.core.models.package import Backend, PackageRecord

logger = logging.getLogger(__name__)

EXPORT_DIR = Path("/tmp")
_RULE = "═" * 59
_THIN_RULE = "─" * 57

# Called after each package in a batch (for progress output)
ProgressCallback = Callable[[OperationResult], None]


class BulkSummary(BaseModel):
    """Outcome of a bulk operation."""

    action: str
    succeeded: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)
    skipped: list[str] = Field(default_factory=list)
    commands: list[CommandResult] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def record(self, result: OperationResult) -> None:
        if result.ok:
            self.succeeded.append(result.name)
        else:
            self.failed[result.name] = result.error or "failed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "ok": self.ok,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
        }


class BulkService:
    """Batch install/remove and system-wide maintenance."""

    def __init__(self, services: Services):
        self.services = services

    # ── Install / remove ────────────────────────────────────────

    def install_category(
        self,
        category: str,
        cancel: threading.Event | None = None,
        progress: ProgressCallback | None = None,
    ) -> BulkSummary:
        """Install every not-installed package in ``category``."""
        records = self._category(category)
        todo = [r for r in records if not self.services.cache.is_installed(r)]
        summary = BulkSummary(action=f"install-category:{category}")
        summary.skipped.extend(r.name for r in records if r not in todo)
        self._run(summary, todo, "install", cancel, progress)
        return summary

    def remove_category(
        self,
        category: str,
        cancel: threading.Event | None = None,
        progress: ProgressCallback | None = None,
    ) -> BulkSummary:
        """Remove every installed package in ``category``."""
        records = self._category(category)
        todo = [r for r in records if self.services.cache.is_installed(r)]
        summary = BulkSummary(action=f"remove-category:{category}")
        summary.skipped.extend(r.name for r in records if r not in todo)
        self._run(summary, todo, "remove", cancel, progress)
        return summary

    def install_selected(
        self,
        names: Iterable[str],
        cancel: threading.Event | None = None,
        progress: ProgressCallback | None = None,
    ) -> BulkSummary:
        summary = BulkSummary(action="install-selected")
        self._run(summary, self._resolve(names, summary), "install", cancel, progress)
        return summary

    def remove_selected(
        self,
        names: Iterable[str],
        cancel: threading.Event | None = None,
        progress: ProgressCallback | None = None,
    ) -> BulkSummary:
        summary = BulkSummary(action="remove-selected")
        self._run(summary, self._resolve(names, summary), "remove", cancel, progress)
        return summary

    # ── Maintenance ─────────────────────────────────────────────

    def update_all(self) -> BulkSummary:
        """Upgrade everything apt, snap and flatpak manage, then rebuild the cache."""
        logger.info("Starting system update...")
        summary = self._maintain("update-all", lambda adapter: adapter.update_all())
        self.services.cache.rebuild()
        return summary

    def cleanup(self) -> BulkSummary:
        """Drop package caches, orphans, old snap revisions and old journal entries."""
        logger.info("Starting system cleanup...")
        summary = self._maintain("cleanup", lambda adapter: adapter.cleanup())

        if self.services.mock_mode:
            return summary
        logger.info("Cleaning system journal...")
        r = self.services.runner.run(["journalctl", "--vacuum-time=7d"], root=True)
        summary.commands.append(r)
        if r.ok or r.missing:
            summary.succeeded.append("journal")
        else:
            summary.failed["journal"] = r.describe_failure()
        return summary

    def export_package_list(self, path: Path | None = None) -> Path:
        """Write an INSTALLED / NOT INSTALLED report for every category.

        Returns:
            The path written (default ``/tmp/ultrabunt-packages-<ts>.txt``).
        """
        now = datetime.now()
        if path is None:
            path = EXPORT_DIR / f"ultrabunt-packages-{now:%Y%m%d-%H%M%S}.txt"

        catalog, cache = self.services.catalog, self.services.cache
        lines = [f"ULTRABUNT PACKAGE LIST - {now:%c}", _RULE, ""]
        for category in catalog.visible_categories():
            lines += ["", f"[{category.display_name}]", _THIN_RULE]
            for r in sorted(catalog.list_by_category(category.id), key=lambda r: r.name):
                status = "INSTALLED" if cache.is_installed(r) else "NOT INSTALLED"
                lines.append(f"{r.name:<20} {'[' + status + ']':<15} {r.description}")
        lines += ["", _RULE, f"Export completed: {datetime.now():%c}"]

        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        logger.info("Package list exported to %s", path)
        return path

    # ── Internals ───────────────────────────────────────────────

    def _category(self, category: str) -> list[PackageRecord]:
        if self.services.catalog.category(category) is None:
            raise KeyError(f"Unknown category: {category}")
        return self.services.catalog.list_by_category(category)

    def _resolve(self, names: Iterable[str], summary: BulkSummary) -> list[PackageRecord]:
        records = []
        for name in names:
            record = self.services.catalog.get(name)
            if record is None:
                summary.failed[name] = f"Unknown package: {name}"
            else:
                records.append(record)
        return records

    def _run(
        self,
        summary: BulkSummary,
        records: list[PackageRecord],
        action: str,
        cancel: threading.Event | None,
        progress: ProgressCallback | None,
    ) -> None:
        dispatch = self.services.dispatcher.install if action == "install" else self.services.dispatcher.remove
        for i, record in enumerate(records):
            if cancel is not None and cancel.is_set():
                summary.skipped.extend(r.name for r in records[i:])
                logger.info("Bulk %s cancelled, %d package(s) skipped", action, len(records) - i)
                break
            logger.info("Bulk %s: %s", action, record.name)
            result = dispatch(record.name, cancel=cancel)
            summary.record(result)
            if progress is not None:
                progress(result)

        logger.info(
            "Bulk %s complete: %d succeeded, %d failed",
            action, len(summary.succeeded), len(summary.failed),
        )

    def _maintain(self, action: str, op) -> BulkSummary:
        summary = BulkSummary(action=action)
        for backend in Backend.cached():
            adapter = self.services.backends.get(backend)
            if adapter is None or not adapter.is_available():
                summary.skipped.append(backend.value)
                continue
            results = op(adapter)
            summary.commands.extend(results)
            failures = [r for r in results if not r.ok]
            if failures:
                summary.failed[backend.value] = failures[0].describe_failure()
            else:
                summary.succeeded.append(backend.value)
        return summary
