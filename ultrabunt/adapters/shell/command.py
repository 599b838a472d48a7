"""
Shell command runner — the SINGLE PLACE where subprocesses are started.

Every backend adapter and custom installer runs its commands through a
CommandRunner. Root escalation, timeouts, cancellation and logging of
backend output are centralised here. Failures come back as
CommandResults, never as exceptions.

Sudo invariants:
    - Password piped via stdin only (``sudo -S -k``), never in args
    - Without a password, ``sudo -n`` (fails fast instead of prompting
      inside a captured subprocess)
    - Password never logged
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import threading
import time
from collections.abc import Mapping, Sequence

from ultrabunt.core.models.action import CommandResult

logger = logging.getLogger(__name__)

# How often a running command checks its cancel event
_POLL_INTERVAL_S = 0.2

# Output kept on the result (the log gets everything)
_MAX_CAPTURE = 20_000


class CommandRunner:
    """Run external commands and capture their output.

    Args:
        timeout: Default timeout in seconds for a single command.
        sudo_password: Optional password piped to ``sudo -S``.
    """

    def __init__(self, timeout: int = 1800, sudo_password: str = ""):
        self.timeout = timeout
        self._sudo_password = sudo_password

    @property
    def is_root(self) -> bool:
        return os.geteuid() == 0

    def which(self, name: str) -> str | None:
        """Path of an executable on PATH, or None."""
        return shutil.which(name)

    def run(
        self,
        cmd: Sequence[str],
        *,
        root: bool = False,
        timeout: int | None = None,
        env: Mapping[str, str] | None = None,
        cancel: threading.Event | None = None,
        quiet: bool = False,
    ) -> CommandResult:
        """Run a command.

        Args:
            cmd: Command and arguments.
            root: Whether the command needs root (adds a sudo prefix when
                not already root).
            timeout: Seconds before the command is killed.
            env: Extra environment variables.
            cancel: Event that, once set, terminates the command.
            quiet: Don't log the command's output (bulk listings).

        Returns:
            CommandResult; ``missing`` is set when the executable is absent.
        """
        argv = list(cmd)
        stdin_data: str | None = None

        if root and not self.is_root:
            if self._sudo_password:
                argv = ["sudo", "-S", "-k", *argv]
                stdin_data = self._sudo_password + "\n"
            else:
                argv = ["sudo", "-n", *argv]

        full_env = os.environ.copy()
        if env:
            full_env.update(env)

        limit = timeout if timeout is not None else self.timeout
        display = " ".join(cmd)
        logger.info("$ %s%s", "[root] " if root else "", display)
        start = time.monotonic()

        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE if stdin_data is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                env=full_env,
            )
        except FileNotFoundError:
            logger.debug("Executable not found: %s", argv[0])
            return CommandResult.not_found(list(cmd))
        except OSError as e:
            logger.warning("Cannot start %s: %s", display, e)
            return CommandResult(command=list(cmd), returncode=None, stderr=str(e))

        stdout, stderr, timed_out, cancelled = self._wait(proc, stdin_data, limit, cancel)
        elapsed_ms = int((time.monotonic() - start) * 1000)

        result = CommandResult(
            command=list(cmd),
            returncode=proc.returncode,
            stdout=stdout[-_MAX_CAPTURE:],
            stderr=stderr[-_MAX_CAPTURE:],
            duration_ms=elapsed_ms,
            timed_out=timed_out,
            cancelled=cancelled,
        )

        if not quiet and result.output:
            for line in result.output.splitlines():
                logger.info("  │ %s", line)
        if result.ok:
            logger.debug("Command ok in %dms: %s", elapsed_ms, display)
        else:
            logger.info("%s", result.describe_failure())
        return result

    def run_shell(self, script: str, **kwargs) -> CommandResult:
        """Run a bash snippet (pipes, redirects)."""
        return self.run(["bash", "-c", script], **kwargs)

    @staticmethod
    def _wait(
        proc: subprocess.Popen,
        stdin_data: str | None,
        limit: int,
        cancel: threading.Event | None,
    ) -> tuple[str, str, bool, bool]:
        """Wait for completion, honouring the timeout and cancel event."""
        deadline = time.monotonic() + limit
        pending_input = stdin_data
        while True:
            slice_s = _POLL_INTERVAL_S if cancel is not None else max(deadline - time.monotonic(), 0.01)
            try:
                stdout, stderr = proc.communicate(input=pending_input, timeout=slice_s)
                return stdout or "", stderr or "", False, False
            except subprocess.TimeoutExpired:
                pending_input = None
                if cancel is not None and cancel.is_set():
                    proc.terminate()
                    stdout, stderr = _drain(proc)
                    return stdout, stderr, False, True
                if time.monotonic() >= deadline:
                    proc.kill()
                    stdout, stderr = _drain(proc)
                    return stdout, stderr, True, False


def _drain(proc: subprocess.Popen) -> tuple[str, str]:
    try:
        stdout, stderr = proc.communicate(timeout=5)
    except subprocess.TimeoutExpired:
        proc.kill()
        stdout, stderr = proc.communicate()
    return stdout or "", stderr or ""


def ensure_sudo() -> bool:
    """Prime sudo credentials interactively (``sudo -v``).

    Returns True when running as root or when sudo accepted the password.
    """
    if os.geteuid() == 0:
        return True
    if shutil.which("sudo") is None:
        logger.error("sudo is not installed and we are not root")
        return False
    try:
        return subprocess.run(["sudo", "-v"], check=False).returncode == 0
    except OSError as e:
        logger.error("Cannot run sudo: %s", e)
        return False
