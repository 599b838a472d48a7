"""
Custom installer registry — maps catalog names to their installers.
"""

from __future__ import annotations

import logging

from ultrabunt.core.services.custom_installers.apt_repo import (
    BraveInstaller,
    DockerInstaller,
    NodeJsInstaller,
    SublimeTextInstaller,
    VSCodeInstaller,
)
from ultrabunt.core.services.custom_installers.base import CustomInstaller
from ultrabunt.core.services.custom_installers.scripted import (
    GollamaInstaller,
    N8nInstaller,
    OllamaInstaller,
    WarpTerminalInstaller,
    YtDlpInstaller,
)

logger = logging.getLogger(__name__)


class CustomInstallerRegistry:
    """Registry of custom installers, keyed by catalog name."""

    def __init__(self) -> None:
        self._installers: dict[str, CustomInstaller] = {}

    def register(self, installer: CustomInstaller) -> None:
        if not installer.name:
            raise ValueError(f"{installer!r} has no name")
        self._installers[installer.name] = installer
        logger.debug("Registered custom installer: %s", installer.name)

    def get(self, name: str) -> CustomInstaller | None:
        return self._installers.get(name)

    def names(self) -> list[str]:
        return sorted(self._installers)

    def __contains__(self, name: object) -> bool:
        return name in self._installers

    def __len__(self) -> int:
        return len(self._installers)


def default_installers() -> CustomInstallerRegistry:
    """Registry with every built-in custom installer."""
    registry = CustomInstallerRegistry()
    for cls in (
        DockerInstaller,
        NodeJsInstaller,
        VSCodeInstaller,
        BraveInstaller,
        SublimeTextInstaller,
        WarpTerminalInstaller,
        OllamaInstaller,
        GollamaInstaller,
        YtDlpInstaller,
        N8nInstaller,
    ):
        registry.register(cls())
    return registry
