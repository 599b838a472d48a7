"""
cargo adapter — crates installed with ``cargo install``, with rustup bootstrap.

Runs as the invoking user: crates land in ``~/.cargo/bin``.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from ultrabunt.adapters.base import BackendAdapter
from ultrabunt.adapters.shell.command import CommandRunner
from ultrabunt.core.models.action import CommandResult
from ultrabunt.core.models.package import Backend

logger = logging.getLogger(__name__)

RUSTUP_SCRIPT = "curl --proto '=https' --tlsv1.2 -sSf https://sh.rustup.rs | sh -s -- -y"


class CargoBackend(BackendAdapter):
    """cargo crate backend."""

    def __init__(self, runner: CommandRunner, cargo_home: Path | None = None):
        super().__init__(runner)
        self._cargo_home = cargo_home or Path.home() / ".cargo"

    @property
    def backend(self) -> Backend:
        return Backend.CARGO

    @property
    def cli(self) -> str:
        return "cargo"

    def _cargo(self) -> str | None:
        """Resolve cargo on PATH, falling back to ``~/.cargo/bin/cargo``."""
        found = self.runner.which("cargo")
        if found:
            return found
        local = self._cargo_home / "bin" / "cargo"
        return str(local) if local.is_file() else None

    def is_available(self) -> bool:
        return self._cargo() is not None

    def installed_crates(self) -> set[str]:
        """Crate names from ``cargo install --list``.

        Output looks like::

            tokei v12.1.2:
                tokei
        """
        cargo = self._cargo()
        if cargo is None:
            return set()
        r = self.runner.run([cargo, "install", "--list"], timeout=60, quiet=True)
        if not r.ok:
            return set()
        crates: set[str] = set()
        for line in r.stdout.splitlines():
            if line and not line[0].isspace() and line.rstrip().endswith(":"):
                crates.add(line.split()[0])
        return crates

    def probe_one(self, backend_id: str) -> bool:
        return backend_id in self.installed_crates()

    def ensure_ready(self, cancel: threading.Event | None = None) -> tuple[bool, str]:
        if self.is_available():
            return True, ""
        logger.info("cargo missing, installing Rust via rustup...")
        r = self.runner.run_shell(RUSTUP_SCRIPT, timeout=900, cancel=cancel)
        if not r.ok:
            return False, f"Rust could not be installed: {r.describe_failure()}"
        if not self.is_available():
            return False, "cargo still missing after running rustup"
        return True, ""

    def install(self, backend_id: str, cancel: threading.Event | None = None) -> CommandResult:
        cargo = self._cargo()
        if cargo is None:
            return CommandResult.not_found(["cargo", "install", backend_id])
        logger.info("Installing %s via cargo...", backend_id)
        return self.runner.run([cargo, "install", backend_id], cancel=cancel)

    def remove(self, backend_id: str, cancel: threading.Event | None = None) -> CommandResult:
        cargo = self._cargo()
        if cargo is None:
            return CommandResult.not_found(["cargo", "uninstall", backend_id])
        logger.info("Removing %s via cargo...", backend_id)
        return self.runner.run([cargo, "uninstall", backend_id], cancel=cancel)
