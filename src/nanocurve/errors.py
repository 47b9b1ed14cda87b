"""Exception hierarchy for nanocurve."""

from __future__ import annotations

__all__ = ["CurveError", "DescriptorError", "ConfigError"]


class CurveError(Exception):
    """Base class for errors raised by nanocurve."""


class DescriptorError(CurveError, ValueError):
    """Raised when a serialized curve descriptor cannot be decoded."""


class ConfigError(CurveError, ValueError):
    """Raised when a configuration file is malformed."""
