"""
Service context — the catalog, cache and dispatcher for one process.

Built ONCE at startup by whichever entry point launches the app and
passed explicitly to every consumer:

    - CLI:          main.py   → build_services(settings, excluded=...)
    - Web server:   server.py → create_app(services)
    - Tests:        conftest  → build_services(Settings(), mock=True)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass

from ultrabunt.adapters.registry import BackendRegistry, build_backends, build_mock_backends
from ultrabunt.adapters.shell.command import CommandRunner
from ultrabunt.core.config.loader import Settings
from ultrabunt.core.models.action import CommandResult
from ultrabunt.core.models.package import Backend
from ultrabunt.core.services.cache import InstalledSetCache
from ultrabunt.core.services.catalog import Catalog
from ultrabunt.core.services.custom_installers import (
    CustomInstallerRegistry,
    InstallContext,
    default_installers,
    mock_installers,
)
from ultrabunt.core.services.dispatcher import Dispatcher

logger = logging.getLogger(__name__)

# Pre-installed ids for --mock mode, so listings have something to show
MOCK_INSTALLED: dict[Backend, tuple[str, ...]] = {
    Backend.APT: ("curl", "git", "htop", "vim"),
    Backend.SNAP: ("firefox",),
}


@dataclass
class Services:
    """Everything a consumer needs, wired together."""

    settings: Settings
    catalog: Catalog
    backends: BackendRegistry
    installers: CustomInstallerRegistry
    cache: InstalledSetCache
    dispatcher: Dispatcher
    runner: CommandRunner

    @property
    def mock_mode(self) -> bool:
        return self.backends.mock_mode

    def install_context(self, cancel: threading.Event | None = None) -> InstallContext:
        return InstallContext(
            runner=self.runner,
            apt=self.backends.apt,
            node_lts=self.settings.node_lts,
            cancel=cancel,
        )

    def exclude(self, categories: Iterable[str]) -> None:
        """Hide more categories from menus, listings and the refresh."""
        self.catalog = self.catalog.with_excluded(self.catalog.excluded | set(categories))
        self.dispatcher.catalog = self.catalog

    def visible_backends(self) -> set[Backend]:
        """Backends used by records in non-excluded categories."""
        return {r.backend for r in self.catalog.visible_records()}


def build_services(
    settings: Settings,
    *,
    excluded: Iterable[str] | None = None,
    mock: bool = False,
    runner: CommandRunner | None = None,
    backends: BackendRegistry | None = None,
    installers: CustomInstallerRegistry | None = None,
) -> Services:
    """Wire catalog, backends, installers, cache and dispatcher.

    Args:
        settings: Loaded settings.
        excluded: Categories hidden from menus and background refresh
            (default: ``settings.excluded_categories``).
        mock: Use in-memory backends and installers.
        runner, backends, installers: Overrides, mainly for tests.
    """
    excluded_set = set(settings.excluded_categories if excluded is None else excluded)
    catalog = Catalog.builtin(
        php_version=settings.php_version,
        extra=settings.packages,
        excluded=excluded_set,
    )
    runner = runner or CommandRunner(timeout=settings.command_timeout)

    services: Services | None = None

    def make_context(cancel: threading.Event | None) -> InstallContext:
        assert services is not None
        return services.install_context(cancel)

    if installers is None:
        if mock:
            custom = [r.name for r in catalog.records() if r.backend is Backend.CUSTOM]
            installers = mock_installers(custom)
        else:
            installers = default_installers()

    if backends is None:
        if mock:
            backends = build_mock_backends(MOCK_INSTALLED)
        else:
            backends = build_backends(
                runner,
                snap_classic=settings.snap_classic,
                node_bootstrap=_node_bootstrap(installers, make_context),
            )

    cache = InstalledSetCache(backends, installers, make_context)
    dispatcher = Dispatcher(catalog, cache, backends, installers, make_context)
    services = Services(
        settings=settings,
        catalog=catalog,
        backends=backends,
        installers=installers,
        cache=cache,
        dispatcher=dispatcher,
        runner=runner,
    )
    logger.debug(
        "Services built: %d packages, %d custom installers, mock=%s",
        len(catalog), len(installers), backends.mock_mode,
    )
    return services


def _node_bootstrap(installers: CustomInstallerRegistry, make_context):
    """npm bootstrap that runs the nodejs custom installer."""

    def bootstrap(cancel: threading.Event | None) -> CommandResult:
        nodejs = installers.get("nodejs")
        if nodejs is None:
            return CommandResult(command=["nodejs"], missing=True, stderr="No nodejs installer registered")
        return nodejs.install(make_context(cancel))

    return bootstrap
