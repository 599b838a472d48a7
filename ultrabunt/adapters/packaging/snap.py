"""
Snap adapter — snapd readiness, classic confinement, snap install/remove.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from pathlib import Path

from ultrabunt.adapters.base import BackendAdapter
from ultrabunt.adapters.packaging.apt import AptBackend
from ultrabunt.adapters.shell.command import CommandRunner
from ultrabunt.core.models.action import CommandResult
from ultrabunt.core.models.package import Backend
from ultrabunt.core.services.catalog.data import SNAP_CLASSIC

logger = logging.getLogger(__name__)

SNAPD_SOCKET = Path("/run/snapd.socket")


class SnapBackend(BackendAdapter):
    """Snap backend.

    ``ensure_ready`` bootstraps snapd once per session: installs the
    ``snapd`` APT package when the CLI is missing, starts the socket,
    and waits for the seed to load.
    """

    def __init__(
        self,
        runner: CommandRunner,
        apt: AptBackend,
        classic: Iterable[str] = (),
        socket_path: Path = SNAPD_SOCKET,
    ):
        super().__init__(runner)
        self._apt = apt
        self._classic = SNAP_CLASSIC | frozenset(classic)
        self._socket_path = socket_path
        self._ready = False
        self._lock = threading.Lock()

    @property
    def backend(self) -> Backend:
        return Backend.SNAP

    @property
    def cli(self) -> str:
        return "snap"

    def probe_one(self, backend_id: str) -> bool:
        if not self.is_available():
            return False
        return self.runner.run(["snap", "list", backend_id], timeout=30, quiet=True).ok

    def list_installed(self) -> set[str] | None:
        if not self.is_available():
            return None
        r = self.runner.run(["snap", "list"], timeout=60, quiet=True)
        if not r.ok:
            logger.warning("snap listing failed: %s", r.describe_failure())
            return None
        return _first_column(r.stdout, skip_header=True)

    # ── Readiness ───────────────────────────────────────────────

    @property
    def ready(self) -> bool:
        return self._ready

    def ensure_ready(self, cancel: threading.Event | None = None) -> tuple[bool, str]:
        with self._lock:
            if self._ready:
                return True, ""

            if not self.is_available():
                logger.info("snap CLI missing, installing snapd...")
                self._apt.refresh_index(cancel=cancel)
                r = self._apt.install("snapd", cancel=cancel)
                if not r.ok:
                    return False, f"snapd could not be installed: {r.describe_failure()}"
                if not self.is_available():
                    return False, "snap CLI still missing after installing snapd"

            if not self._socket_path.exists():
                logger.info("Starting snapd.socket...")
                r = self.runner.run(
                    ["systemctl", "enable", "--now", "snapd.socket"],
                    root=True, timeout=120, cancel=cancel,
                )
                if not r.ok:
                    return False, f"snapd.socket could not be started: {r.describe_failure()}"

            r = self.runner.run(
                ["snap", "wait", "system", "seed.loaded"],
                root=True, timeout=300, cancel=cancel,
            )
            if not r.ok:
                return False, f"snapd did not become ready: {r.describe_failure()}"

            self._ready = True
            logger.info("snapd is ready")
            return True, ""

    # ── Confinement ─────────────────────────────────────────────

    def needs_classic(self, backend_id: str) -> bool:
        """Whether the snap is published with classic confinement.

        Checks the static allow-list first, then the store metadata
        (``snap info``), where classic channels carry a ``classic`` tag.
        """
        if backend_id in self._classic:
            return True
        r = self.runner.run(["snap", "info", backend_id], timeout=60, quiet=True)
        if not r.ok:
            return False
        for line in r.stdout.splitlines():
            stripped = line.strip()
            if stripped.startswith("confinement:"):
                return stripped.split(":", 1)[1].strip() == "classic"
            if ("/" in stripped.split(":", 1)[0]) and stripped.split()[-1:] == ["classic"]:
                return True
        return False

    # ── Mutations ───────────────────────────────────────────────

    def install(self, backend_id: str, cancel: threading.Event | None = None) -> CommandResult:
        cmd = ["snap", "install", backend_id]
        if self.needs_classic(backend_id):
            cmd.append("--classic")
        logger.info("Installing %s via Snap%s...", backend_id, " (classic)" if "--classic" in cmd else "")
        return self.runner.run(cmd, root=True, cancel=cancel)

    def remove(self, backend_id: str, cancel: threading.Event | None = None) -> CommandResult:
        logger.info("Removing %s via Snap...", backend_id)
        return self.runner.run(["snap", "remove", backend_id], root=True, cancel=cancel)

    def update_all(self) -> list[CommandResult]:
        if not self.is_available():
            return []
        logger.info("Updating Snap packages...")
        return [self.runner.run(["snap", "refresh"], root=True)]

    def cleanup(self) -> list[CommandResult]:
        """Remove disabled (superseded) snap revisions."""
        if not self.is_available():
            return []
        logger.info("Removing old snap revisions...")
        listing = self.runner.run(["snap", "list", "--all"], timeout=60, quiet=True)
        if not listing.ok:
            return [listing]

        results: list[CommandResult] = []
        for line in listing.stdout.splitlines()[1:]:
            parts = line.split()
            if len(parts) >= 3 and "disabled" in parts[-1]:
                name, revision = parts[0], parts[2]
                results.append(self.runner.run(
                    ["snap", "remove", name, f"--revision={revision}"], root=True,
                ))
        return results


def _first_column(text: str, skip_header: bool = False) -> set[str]:
    lines = text.splitlines()
    if skip_header and lines:
        lines = lines[1:]
    return {line.split()[0] for line in lines if line.strip()}
