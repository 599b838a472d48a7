"""
Package model — the catalog's unit of identity.

A PackageRecord is one named, backend-tagged install target. The same
physical tool may appear several times under different names, one per
backend (``vscode``, ``vscode-snap``, ``vscode-flatpak``), so a user can
route around a single backend's failure.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Backend(str, Enum):
    """Package-management subsystems Ultrabunt wraps."""

    APT = "apt"
    SNAP = "snap"
    FLATPAK = "flatpak"
    NPM = "npm"
    CARGO = "cargo"
    CUSTOM = "custom"

    @classmethod
    def cached(cls) -> tuple[Backend, ...]:
        """Backends that are bulk-listed into the installed-set cache."""
        return (cls.APT, cls.SNAP, cls.FLATPAK)

    @property
    def is_cached(self) -> bool:
        return self in Backend.cached()


class Category(BaseModel):
    """A flat grouping label with a display name."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str


class PackageRecord(BaseModel):
    """One install target in the catalog.

    ``backend_id`` is what the backend itself understands (apt package
    name, snap name, flatpak app-id, npm/cargo crate name). For custom
    records it is informational only; the registered installer decides.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    backend_id: str = Field(min_length=1)
    backend: Backend
    description: str = ""
    category: str
    dependency: str | None = None

    @field_validator("name")
    @classmethod
    def _no_whitespace(cls, v: str) -> str:
        if any(ch.isspace() for ch in v):
            raise ValueError(f"package name must not contain whitespace: {v!r}")
        return v

    @property
    def cache_key(self) -> tuple[Backend, str]:
        """Key under which the installed-set cache tracks this record."""
        return (self.backend, self.backend_id)
