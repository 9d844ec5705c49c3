"""
Defines shared type aliases and records for lsix.

Centralizes reusable type hints to improve consistency and readability.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

LabelMode = Literal["short", "long"]
RGB = tuple[int, int, int]


@dataclass(frozen=True, slots=True)
class ImageSource:
    """A path selected by the resolver, before validation."""

    path: Path
    first_frame_only: bool = False


@dataclass(frozen=True, slots=True)
class ImageEntry:
    """A validated image with its display label."""

    path: Path
    label: str
    first_frame_only: bool = False

    @property
    def mtime_ns(self) -> int:
        """Modification time of the source file in nanoseconds."""
        return self.path.stat().st_mtime_ns
