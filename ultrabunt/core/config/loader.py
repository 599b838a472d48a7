"""
Configuration loader — reads ultrabunt.yml into a Settings model.

The config file is optional: with no file, every setting falls back to
its default. It reads YAML, validates against Pydantic schemas, then
applies ``ULTRABUNT_*`` environment overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from ultrabunt.core.models.package import PackageRecord
from ultrabunt.core.observability.logging_config import DEFAULT_LOG_FILE

logger = logging.getLogger(__name__)

CONFIG_FILE = "ultrabunt.yml"
ENV_PREFIX = "ULTRABUNT_"


class ConfigError(Exception):
    """Raised when the configuration file is invalid or unreadable."""


class TtsSettings(BaseModel):
    """Speech Dispatcher (spd-say) announcement settings."""

    enabled: bool = False
    voice: str = "female1"
    rate: int = -20
    pitch: int = 0
    volume: int = 10
    punctuation: str = "some"


class Settings(BaseModel):
    """Process-wide settings."""

    log_file: str = DEFAULT_LOG_FILE
    log_level: str | None = None

    php_version: str = "8.3"
    node_lts: str = "20"

    excluded_categories: list[str] = Field(default_factory=list)
    snap_classic: list[str] = Field(default_factory=list)
    command_timeout: int = 1800

    tts: TtsSettings = Field(default_factory=TtsSettings)

    # Extra catalog entries declared by the user
    packages: list[PackageRecord] = Field(default_factory=list)

    source: str | None = None   # path the settings were loaded from


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Locate ultrabunt.yml.

    Search order: ``ULTRABUNT_CONFIG``, the start directory (default cwd),
    ``~/.config/ultrabunt/``, ``/etc/ultrabunt/``.

    Returns:
        Path to the config file, or None if not found.
    """
    env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
    if env_path:
        return Path(env_path)

    candidates = [
        (start_dir or Path.cwd()) / CONFIG_FILE,
        Path.home() / ".config" / "ultrabunt" / CONFIG_FILE,
        Path("/etc/ultrabunt") / CONFIG_FILE,
    ]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def load_settings(path: Path | None = None, env: dict[str, str] | None = None) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit config path. If None, searches the default locations;
            no file at all yields default settings.
        env: Environment mapping for overrides (default: ``os.environ``).

    Returns:
        Validated Settings.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    explicit = path is not None
    if path is None:
        path = find_config_file()

    data: dict[str, Any] = {}
    if path is not None:
        if not path.is_file():
            if explicit:
                raise ConfigError(f"Config file not found: {path}")
            raise ConfigError(f"{ENV_PREFIX}CONFIG points to a missing file: {path}")
        data = _read_yaml(path)
        data["source"] = str(path)

    _apply_env(data, os.environ if env is None else env)

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.debug("Settings loaded from %s", settings.source or "defaults")
    return settings


def _read_yaml(path: Path) -> dict[str, Any]:
    logger.debug("Loading config from %s", path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def _apply_env(data: dict[str, Any], env: Any) -> None:
    """Overlay ULTRABUNT_* environment variables onto raw config data."""
    for key in ("LOG_FILE", "LOG_LEVEL", "PHP_VERSION"):
        value = env.get(ENV_PREFIX + key)
        if value:
            data[key.lower()] = value

    tts = dict(data.get("tts") or {})
    for key in ("ENABLED", "VOICE", "RATE", "PITCH", "VOLUME", "PUNCTUATION"):
        value = env.get(f"{ENV_PREFIX}TTS_{key}")
        if value is None or value == "":
            continue
        if key == "ENABLED":
            tts["enabled"] = value.strip().lower() in ("1", "true", "yes", "on")
        else:
            tts[key.lower()] = value
    if tts:
        data["tts"] = tts
