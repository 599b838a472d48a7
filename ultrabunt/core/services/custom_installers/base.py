"""
Custom installer contract — one object per bespoke tool.

Each installer owns install, remove and detection for a single catalog
name, so the three stay in sync. Detection is always a live probe.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from ultrabunt.adapters.packaging.apt import AptBackend
from ultrabunt.adapters.shell.command import CommandRunner
from ultrabunt.core.models.action import CommandResult

logger = logging.getLogger(__name__)


@dataclass
class InstallContext:
    """What a custom installer may use while it runs."""

    runner: CommandRunner
    apt: AptBackend
    node_lts: str = "20"
    cancel: threading.Event | None = None
    extra: dict[str, str] = field(default_factory=dict)


# A step runs one command and reports its result
Step = Callable[[InstallContext], CommandResult]


class CustomInstaller(ABC):
    """Bespoke installer for one catalog entry."""

    #: Catalog name this installer serves
    name: str = ""
    #: Shown to the user after a successful install
    note: str = ""

    @abstractmethod
    def install(self, ctx: InstallContext) -> CommandResult:
        """Install the tool."""

    @abstractmethod
    def remove(self, ctx: InstallContext) -> CommandResult:
        """Remove the tool."""

    @abstractmethod
    def is_installed(self, ctx: InstallContext) -> bool:
        """Live detection rule for this tool."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


def run_steps(ctx: InstallContext, steps: Sequence[Step], *, label: str) -> CommandResult:
    """Run steps in order, stopping at the first failure.

    Returns:
        The failing step's result, or a combined success result whose
        output joins every step's output.
    """
    outputs: list[str] = []
    commands: list[str] = []
    duration = 0
    for step in steps:
        if ctx.cancel is not None and ctx.cancel.is_set():
            return CommandResult(command=[label], cancelled=True, stdout="\n".join(outputs))
        r = step(ctx)
        duration += r.duration_ms
        commands.extend(r.command)
        if r.output:
            outputs.append(r.output)
        if not r.ok:
            logger.error("%s: step failed: %s", label, r.describe_failure())
            return r
    return CommandResult(
        command=[label],
        returncode=0,
        stdout="\n".join(outputs),
        duration_ms=duration,
    )


def shell(script: str, *, root: bool = True, timeout: int | None = None) -> Step:
    """Step that runs a bash snippet."""

    def _step(ctx: InstallContext) -> CommandResult:
        return ctx.runner.run_shell(script, root=root, timeout=timeout, cancel=ctx.cancel)

    return _step


def command(cmd: Sequence[str], *, root: bool = True, timeout: int | None = None) -> Step:
    """Step that runs a single command."""

    def _step(ctx: InstallContext) -> CommandResult:
        return ctx.runner.run(list(cmd), root=root, timeout=timeout, cancel=ctx.cancel)

    return _step


def tolerant(step: Step) -> Step:
    """Wrap a step so its failure does not stop the sequence."""

    def _step(ctx: InstallContext) -> CommandResult:
        r = step(ctx)
        if not r.ok and not r.cancelled:
            logger.debug("Ignoring failed optional step: %s", r.describe_failure())
            return r.model_copy(update={"returncode": 0, "missing": False, "timed_out": False})
        return r

    return _step


def apt_refresh() -> Step:
    def _step(ctx: InstallContext) -> CommandResult:
        r = ctx.apt.refresh_index(cancel=ctx.cancel)
        if r.cancelled:
            return r
        # index refresh failures only warn
        return r.model_copy(update={"returncode": 0, "missing": False, "timed_out": False})

    return _step


def apt_install(package: str) -> Step:
    def _step(ctx: InstallContext) -> CommandResult:
        return ctx.apt.install(package, cancel=ctx.cancel)

    return _step


def apt_remove(package: str) -> Step:
    def _step(ctx: InstallContext) -> CommandResult:
        return ctx.apt.remove(package, cancel=ctx.cancel)

    return _step
