"""Bespoke installers for tools that no single package manager covers."""

from ultrabunt.core.services.custom_installers.base import (
    CustomInstaller,
    InstallContext,
    run_steps,
)
from ultrabunt.core.services.custom_installers.mock import MockCustomInstaller, mock_installers
from ultrabunt.core.services.custom_installers.registry import (
    CustomInstallerRegistry,
    default_installers,
)

__all__ = [
    "CustomInstaller",
    "CustomInstallerRegistry",
    "InstallContext",
    "MockCustomInstaller",
    "default_installers",
    "mock_installers",
    "run_steps",
]
