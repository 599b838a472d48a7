"""
Spoken announcements through Speech Dispatcher (``spd-say``).

Off unless ``tts.enabled`` (or ``ULTRABUNT_TTS_ENABLED``) is set. Falls
back to ``espeak`` when spd-say is missing; silent when neither exists.
"""

from __future__ import annotations

import logging

import click

from ultrabunt.adapters.shell.command import CommandRunner
from ultrabunt.core.config.loader import TtsSettings

logger = logging.getLogger(__name__)


class Announcer:
    """Print a message and, when enabled, speak it."""

    def __init__(self, settings: TtsSettings, runner: CommandRunner):
        self.settings = settings
        self.runner = runner
        self._warned = False

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    def command(self, text: str, priority: str = "text") -> list[str] | None:
        """The speech command for ``text``, or None when no engine is present."""
        s = self.settings
        if self.runner.which("spd-say"):
            return [
                "spd-say",
                "--voice-type", s.voice,
                "--rate", str(s.rate),
                "--pitch", str(s.pitch),
                "--volume", str(s.volume),
                "--punctuation-mode", s.punctuation,
                "--priority", priority,
                "--wait",
                text,
            ]
        if self.runner.which("espeak"):
            rate = min(max(s.rate + 175, 80), 450)
            return ["espeak", "-s", str(rate), "-p", str(s.pitch + 50), "-a", str(s.volume * 20), "-v", "en+f3", text]
        return None

    def speak(self, text: str, priority: str = "text") -> bool:
        if not self.enabled:
            return False
        cmd = self.command(click.unstyle(text).strip(), priority)
        if cmd is None:
            if not self._warned:
                logger.warning("Text-to-speech enabled but spd-say is not installed (apt install speech-dispatcher)")
                self._warned = True
            return False
        return self.runner.run(cmd, timeout=10, quiet=True).ok

    def announce(self, message: str, fg: str | None = None, priority: str = "text") -> None:
        click.secho(message, fg=fg)
        self.speak(message, priority)
