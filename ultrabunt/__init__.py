"""Ultrabunt — Ubuntu/Mint package manager front-end."""

__version__ = "4.2.0"
