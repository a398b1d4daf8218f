"""Exceptions raised by the Vigil scan pipeline."""

from __future__ import annotations


class VigilError(Exception):
    """Base class for errors surfaced to Vigil callers."""


class ConfigurationError(VigilError):
    """No usable provider credential is configured for the requested scan."""


class InvalidInputError(VigilError):
    """The submitted file or URL was rejected before any provider call."""
