"""Public package exports for lsix."""

from __future__ import annotations

from .main import browse_images, clear_cache, list_images

__all__ = ["browse_images", "clear_cache", "list_images"]
