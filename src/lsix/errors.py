"""
Exception hierarchy for lsix.

Each subclass maps to one handling policy: fatal, skip the item, skip
the row, or proceed without the cache. Callers catch the narrowest
class that matches the policy they implement.
"""

from __future__ import annotations


class LsixError(Exception):
    """Base class for all lsix failures."""


class ConfigError(LsixError):
    """Configuration file or environment override is invalid."""


class EnvironmentUnsupported(LsixError):
    """The terminal cannot display sixel graphics."""


class InputMissing(LsixError):
    """An image path does not exist or cannot be read."""


class DecodeFailed(LsixError):
    """An image file could not be decoded."""


class EncodeFailed(LsixError):
    """A composed row could not be encoded as a graphics stream."""


class CacheUnavailable(LsixError):
    """The row cache directory cannot be read or written."""


class OutputClosed(LsixError):
    """Standard output was closed by the reader."""


__all__ = [
    "CacheUnavailable",
    "ConfigError",
    "DecodeFailed",
    "EncodeFailed",
    "EnvironmentUnsupported",
    "InputMissing",
    "LsixError",
    "OutputClosed",
]
