"""
Mock custom installer — in-memory stand-in used by ``--mock`` mode and tests.
"""

from __future__ import annotations

from ultrabunt.core.models.action import CommandResult
from ultrabunt.core.services.custom_installers.base import CustomInstaller, InstallContext
from ultrabunt.core.services.custom_installers.registry import CustomInstallerRegistry


class MockCustomInstaller(CustomInstaller):
    """Custom installer that only flips an in-memory flag."""

    def __init__(self, name: str, installed: bool = False, fail_with: str = "", note: str = ""):
        self.name = name
        self.note = note
        self.installed = installed
        self.fail_with = fail_with
        self.calls: list[str] = []

    def install(self, ctx: InstallContext) -> CommandResult:
        return self._mutate("install", ctx, True)

    def remove(self, ctx: InstallContext) -> CommandResult:
        return self._mutate("remove", ctx, False)

    def is_installed(self, ctx: InstallContext) -> bool:
        self.calls.append("is_installed")
        return self.installed

    def _mutate(self, op: str, ctx: InstallContext, state: bool) -> CommandResult:
        self.calls.append(op)
        cmd = [f"mock-custom-{self.name}", op]
        if ctx.cancel is not None and ctx.cancel.is_set():
            return CommandResult(command=cmd, returncode=-15, cancelled=True)
        if self.fail_with:
            return CommandResult(command=cmd, returncode=1, stderr=self.fail_with)
        self.installed = state
        return CommandResult(command=cmd, returncode=0, stdout=f"[mock] {op} {self.name}")


def mock_installers(names: list[str], installed: set[str] | None = None) -> CustomInstallerRegistry:
    """Registry of MockCustomInstallers for the given names."""
    installed = installed or set()
    registry = CustomInstallerRegistry()
    for name in names:
        registry.register(MockCustomInstaller(name, installed=name in installed))
    return registry
