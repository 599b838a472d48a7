"""
Flatpak adapter — flatpak bootstrap, flathub remote, app install/remove.
"""

from __future__ import annotations

import logging
import threading

from ultrabunt.adapters.base import BackendAdapter
from ultrabunt.adapters.packaging.apt import AptBackend
from ultrabunt.adapters.shell.command import CommandRunner
from ultrabunt.core.models.action import CommandResult
from ultrabunt.core.models.package import Backend

logger = logging.getLogger(__name__)

FLATHUB_NAME = "flathub"
FLATHUB_URL = "https://flathub.org/repo/flathub.flatpakrepo"


class FlatpakBackend(BackendAdapter):
    """Flatpak backend (system installation, flathub remote)."""

    def __init__(self, runner: CommandRunner, apt: AptBackend):
        super().__init__(runner)
        self._apt = apt
        self._remote_added = False
        self._lock = threading.Lock()

    @property
    def backend(self) -> Backend:
        return Backend.FLATPAK

    @property
    def cli(self) -> str:
        return "flatpak"

    def probe_one(self, backend_id: str) -> bool:
        return backend_id in self.list_all()

    def list_installed(self) -> set[str] | None:
        if not self.is_available():
            return None
        r = self.runner.run(
            ["flatpak", "list", "--app", "--columns=application"],
            timeout=60, quiet=True,
        )
        if not r.ok:
            logger.warning("flatpak listing failed: %s", r.describe_failure())
            return None
        return {
            line.strip() for line in r.stdout.splitlines()
            if line.strip() and line.strip() != "Application ID"
        }

    def ensure_ready(self, cancel: threading.Event | None = None) -> tuple[bool, str]:
        with self._lock:
            if not self.is_available():
                logger.info("Flatpak required, installing flatpak first...")
                self._apt.refresh_index(cancel=cancel)
                r = self._apt.install("flatpak", cancel=cancel)
                if not r.ok:
                    return False, f"flatpak could not be installed: {r.describe_failure()}"
                if not self.is_available():
                    return False, "flatpak CLI still missing after installation"

            if not self._remote_added:
                r = self.runner.run(
                    ["flatpak", "remote-add", "--if-not-exists", FLATHUB_NAME, FLATHUB_URL],
                    root=True, timeout=120, cancel=cancel,
                )
                if not r.ok:
                    return False, f"Could not register the {FLATHUB_NAME} remote: {r.describe_failure()}"
                self._remote_added = True
            return True, ""

    def install(self, backend_id: str, cancel: threading.Event | None = None) -> CommandResult:
        logger.info("Installing %s via Flatpak...", backend_id)
        return self.runner.run(
            ["flatpak", "install", "-y", "--noninteractive", FLATHUB_NAME, backend_id],
            root=True, cancel=cancel,
        )

    def remove(self, backend_id: str, cancel: threading.Event | None = None) -> CommandResult:
        logger.info("Removing %s via Flatpak...", backend_id)
        return self.runner.run(
            ["flatpak", "uninstall", "-y", "--noninteractive", backend_id],
            root=True, cancel=cancel,
        )

    def update_all(self) -> list[CommandResult]:
        if not self.is_available():
            return []
        logger.info("Updating Flatpak apps...")
        return [self.runner.run(["flatpak", "update", "-y", "--noninteractive"], root=True)]

    def cleanup(self) -> list[CommandResult]:
        if not self.is_available():
            return []
        logger.info("Cleaning Flatpak cache...")
        return [self.runner.run(["flatpak", "uninstall", "--unused", "-y", "--noninteractive"], root=True)]
