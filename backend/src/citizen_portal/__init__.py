"""Citizen portal backend - submission intake service."""

__version__ = "0.1.0"
