"""Language package managers — npm, cargo."""

from ultrabunt.adapters.languages.cargo import CargoBackend
from ultrabunt.adapters.languages.npm import NpmBackend

__all__ = ["CargoBackend", "NpmBackend"]
