"""
Logging setup for the CLI, the menu and the API server.

``main.py`` calls :func:`setup_logging` once from the root command; every
module logs through ``logging.getLogger(__name__)``.

Console level comes from ``-v`` / ``-q`` / ``--debug``, then the
``log_level`` setting (``ULTRABUNT_LOG_LEVEL``), then WARNING.

Backend commands are always traced to a log file at INFO:
``/var/log/ultrabunt.log`` when writable, otherwise
``~/.local/state/ultrabunt/ultrabunt.log``.
"""

from __future__ import annotations

import atexit
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

# ── Formats ─────────────────────────────────────────────────────

# (threshold, format, datefmt): first threshold >= level wins
_CONSOLE_FORMATS = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s %(name)s: %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "%(message)s", None),
)

_FILE_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

DEFAULT_LOG_FILE = "/var/log/ultrabunt.log"
FALLBACK_LOG_FILE = Path.home() / ".local" / "state" / "ultrabunt" / "ultrabunt.log"

# Flask's request logger and urllib3 stay at WARNING below DEBUG
_NOISY_LOGGERS = ("urllib3", "werkzeug")

_file_handler: logging.FileHandler | None = None


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = "INFO",
    quiet_third_party: bool = True,
) -> Path | None:
    """Install the console handler and, when possible, the file handler.

    Args:
        level: Console level name.
        log_file: Preferred log file path, or None for console only.
        log_file_level: File handler level (console level when None).
        quiet_third_party: Hold :data:`_NOISY_LOGGERS` at WARNING unless
            the console is at DEBUG.

    Returns:
        Path of the file being written, or None.
    """
    global _file_handler

    console_level = _parse_level(level)
    fmt, datefmt = _console_format(console_level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    shutdown_logging()
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    used_path = resolve_log_file(Path(log_file)) if log_file else None
    if used_path is not None:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        root_level = min(root_level, file_level)

        handler = logging.FileHandler(used_path, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(handler)
        _file_handler = handler

    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False
    return used_path


def shutdown_logging() -> None:
    """Detach and close the log file handler, if any."""
    global _file_handler
    if _file_handler is not None:
        logging.getLogger().removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None


atexit.register(shutdown_logging)


def resolve_log_file(preferred: Path) -> Path | None:
    """Return a writable log file path.

    Tries ``preferred`` first, then the per-user fallback under
    ``~/.local/state``. Returns None if neither can be opened.
    """
    for candidate in (preferred, FALLBACK_LOG_FILE):
        try:
            candidate.parent.mkdir(parents=True, exist_ok=True)
            with candidate.open("a", encoding="utf-8"):
                pass
        except OSError:
            continue
        if candidate != preferred:
            logger.debug("Log file %s not writable, using %s", preferred, candidate)
        return candidate
    return None


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric


def _console_format(level: int) -> tuple[str, str | None]:
    for threshold, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            return fmt, datefmt
    return _CONSOLE_FORMATS[-1][1], None
