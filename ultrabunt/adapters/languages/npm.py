"""
npm adapter — global npm packages, with Node.js bootstrap.

Never bulk-listed: every check is a live ``npm ls -g`` call.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from ultrabunt.adapters.base import BackendAdapter
from ultrabunt.adapters.shell.command import CommandRunner
from ultrabunt.core.models.action import CommandResult
from ultrabunt.core.models.package import Backend

logger = logging.getLogger(__name__)

# Installs Node.js (and npm) when npm is missing
NodeBootstrap = Callable[[threading.Event | None], CommandResult]


class NpmBackend(BackendAdapter):
    """Global npm package backend."""

    def __init__(self, runner: CommandRunner, bootstrap: NodeBootstrap | None = None):
        super().__init__(runner)
        self.bootstrap = bootstrap

    @property
    def backend(self) -> Backend:
        return Backend.NPM

    @property
    def cli(self) -> str:
        return "npm"

    def probe_one(self, backend_id: str) -> bool:
        if not self.is_available():
            return False
        r = self.runner.run(["npm", "ls", "-g", "--depth=0", backend_id], timeout=60, quiet=True)
        return r.ok and backend_id in r.stdout

    def ensure_ready(self, cancel: threading.Event | None = None) -> tuple[bool, str]:
        if self.is_available():
            return True, ""
        if self.bootstrap is None:
            return False, "npm is not installed and no Node.js installer is registered"

        logger.info("npm missing, installing Node.js first...")
        r = self.bootstrap(cancel)
        if not r.ok:
            return False, f"Node.js could not be installed: {r.describe_failure()}"
        if not self.is_available():
            return False, "npm still missing after installing Node.js"
        return True, ""

    def install(self, backend_id: str, cancel: threading.Event | None = None) -> CommandResult:
        logger.info("Installing %s via npm...", backend_id)
        return self.runner.run(["npm", "install", "-g", backend_id], root=True, cancel=cancel)

    def remove(self, backend_id: str, cancel: threading.Event | None = None) -> CommandResult:
        logger.info("Removing %s via npm...", backend_id)
        return self.runner.run(["npm", "uninstall", "-g", backend_id], root=True, cancel=cancel)
