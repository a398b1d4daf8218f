"""Vigil - file and URL reputation checker."""

__version__ = "1.0.0"
