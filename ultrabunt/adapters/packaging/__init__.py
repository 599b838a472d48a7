"""System package managers — apt, snap, flatpak."""

from ultrabunt.adapters.packaging.apt import AptBackend
from ultrabunt.adapters.packaging.flatpak import FlatpakBackend
from ultrabunt.adapters.packaging.snap import SnapBackend

__all__ = ["AptBackend", "FlatpakBackend", "SnapBackend"]
