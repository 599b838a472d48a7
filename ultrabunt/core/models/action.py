"""
CommandResult and OperationResult models — the execution contract.

Adapters run commands and return CommandResults. The dispatcher turns
them into OperationResults. Operational failures are captured in these
models, never raised.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class ErrorKind(str, Enum):
    """Why a dispatcher operation failed."""

    NOT_FOUND = "not_found"
    DEPENDENCY_MISSING = "dependency_missing"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    BACKEND_COMMAND_FAILED = "backend_command_failed"
    UNKNOWN_CUSTOM_INSTALLER = "unknown_custom_installer"
    CANCELLED = "cancelled"


class CommandResult(BaseModel):
    """Outcome of a single subprocess invocation."""

    command: list[str] = Field(default_factory=list)
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0

    missing: bool = False       # executable not found on PATH
    timed_out: bool = False
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not (self.missing or self.timed_out or self.cancelled)

    @property
    def output(self) -> str:
        """Combined stdout + stderr, as the log would show it."""
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)

    def describe_failure(self) -> str:
        """One-line reason for a failed command."""
        cmd = " ".join(self.command)
        if self.missing:
            return f"Command not found: {self.command[0] if self.command else cmd}"
        if self.timed_out:
            return f"Command timed out: {cmd}"
        if self.cancelled:
            return f"Command cancelled: {cmd}"
        return f"Command failed (exit {self.returncode}): {cmd}"

    @classmethod
    def not_found(cls, command: list[str]) -> CommandResult:
        return cls(command=list(command), missing=True)


class OperationResult(BaseModel):
    """Result of an install or remove through the dispatcher."""

    name: str
    action: Literal["install", "remove"]
    ok: bool = True
    error_kind: ErrorKind | None = None
    error: str | None = None
    output: str = ""

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    # Installed records that declare this package as their dependency
    dependents: list[str] = Field(default_factory=list)
    # Post-install hint for the user (e.g. log out for group changes)
    note: str | None = None

    @classmethod
    def success(cls, name: str, action: Literal["install", "remove"], **kwargs: Any) -> OperationResult:
        return cls(name=name, action=action, ok=True, **kwargs)

    @classmethod
    def failure(
        cls,
        name: str,
        action: Literal["install", "remove"],
        kind: ErrorKind,
        error: str,
        **kwargs: Any,
    ) -> OperationResult:
        return cls(name=name, action=action, ok=False, error_kind=kind, error=error, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
