"""
APT adapter — dpkg queries and apt-get install/remove.
"""

from __future__ import annotations

import logging
import threading

from ultrabunt.adapters.base import BackendAdapter
from ultrabunt.core.models.action import CommandResult
from ultrabunt.core.models.package import Backend

logger = logging.getLogger(__name__)

# apt-get runs under sudo, which resets the environment
_NONINTERACTIVE = ["env", "DEBIAN_FRONTEND=noninteractive"]


class AptBackend(BackendAdapter):
    """APT / dpkg backend."""

    @property
    def backend(self) -> Backend:
        return Backend.APT

    @property
    def cli(self) -> str:
        return "apt-get"

    def is_available(self) -> bool:
        return all(self.runner.which(tool) is not None for tool in ("dpkg-query", self.cli))

    def probe_one(self, backend_id: str) -> bool:
        r = self.runner.run(
            ["dpkg-query", "-W", "-f=${Status}", backend_id],
            timeout=30, quiet=True,
        )
        return r.returncode == 0 and "install ok installed" in r.stdout

    def list_installed(self) -> set[str] | None:
        r = self.runner.run(
            ["dpkg-query", "-W", "-f=${db:Status-Abbrev}\t${Package}\n"],
            timeout=120, quiet=True,
        )
        if not r.ok:
            if not r.missing:
                logger.warning("dpkg-query listing failed: %s", r.describe_failure())
            return None

        installed: set[str] = set()
        for line in r.stdout.splitlines():
            status, _, name = line.partition("\t")
            if status.strip() == "ii" and name.strip():
                installed.add(name.strip())
        return installed

    def package_exists(self, backend_id: str) -> bool:
        """Whether the package is known to the configured repositories."""
        return self.runner.run(["apt-cache", "show", backend_id], timeout=60, quiet=True).ok

    def refresh_index(self, cancel: threading.Event | None = None) -> CommandResult:
        """``apt-get update``. Failure is logged, never fatal."""
        logger.info("Updating APT cache...")
        r = self.runner.run(_NONINTERACTIVE + ["apt-get", "update", "-qq"], root=True, cancel=cancel)
        if r.ok:
            logger.info("APT cache updated successfully")
        elif not r.cancelled:
            logger.warning(
                "APT cache update failed (%s); continuing, some packages may not be available",
                r.describe_failure(),
            )
        return r

    def install(self, backend_id: str, cancel: threading.Event | None = None) -> CommandResult:
        logger.info("Installing %s via APT...", backend_id)
        return self.runner.run(
            _NONINTERACTIVE + ["apt-get", "install", "-y", "--no-install-recommends", backend_id],
            root=True, cancel=cancel,
        )

    def remove(self, backend_id: str, cancel: threading.Event | None = None) -> CommandResult:
        logger.info("Removing %s via APT...", backend_id)
        return self.runner.run(
            _NONINTERACTIVE + ["apt-get", "remove", "--purge", "-y", backend_id],
            root=True, cancel=cancel,
        )

    def update_all(self) -> list[CommandResult]:
        logger.info("Updating APT packages...")
        results = [self.refresh_index()]
        results.append(self.runner.run(_NONINTERACTIVE + ["apt-get", "upgrade", "-y"], root=True))
        return results

    def cleanup(self) -> list[CommandResult]:
        logger.info("Cleaning APT cache...")
        return [
            self.runner.run(_NONINTERACTIVE + ["apt-get", "autoremove", "-y"], root=True),
            self.runner.run(["apt-get", "autoclean", "-y"], root=True),
            self.runner.run(["apt-get", "clean"], root=True),
        ]
