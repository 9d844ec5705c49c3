"""
Parallel image validation and a decode-once bitmap cache.

The pool opens files on worker threads, keeps every decoded bitmap keyed
by absolute path, and hands the same object back on later requests. If
two workers race on one path the first insert wins and the loser's
bitmap is discarded.
"""

from __future__ import annotations

import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from PIL import Image, ImageOps, UnidentifiedImageError

from lsix.constants import COLOR_MODE_RGB, COLOR_MODE_RGBA
from lsix.errors import DecodeFailed, InputMissing
from lsix.logging_utils import logger
from lsix.type_defs import ImageEntry, ImageSource

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable, Iterable, Sequence


@dataclass(frozen=True, slots=True)
class DecodedImage:
    """A decoded bitmap owned by the pool cache."""

    path: Path
    image: Image.Image

    @property
    def width(self) -> int:
        """Bitmap width in pixels."""
        return self.image.width

    @property
    def height(self) -> int:
        """Bitmap height in pixels."""
        return self.image.height

    @property
    def mode(self) -> str:
        """Pillow color mode of the bitmap."""
        return self.image.mode


def default_worker_count() -> int:
    """Return the number of decode workers to use."""
    return os.cpu_count() or 1


def check_image(path: Path) -> None:
    """
    Ensure ``path`` exists and Pillow can identify it.

    Raises:
        InputMissing: If the file is missing or unreadable.
        DecodeFailed: If the header is not a supported image.

    """
    try:
        with Image.open(path) as img:
            img.verify()
    except FileNotFoundError as exc:
        msg = f"Image file not found: '{path}'"
        raise InputMissing(msg) from exc
    except PermissionError as exc:
        msg = f"Image file not readable: '{path}'"
        raise InputMissing(msg) from exc
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError,
            SyntaxError, ValueError) as exc:
        msg = f"Error reading image '{path}': {exc!s}"
        raise DecodeFailed(msg) from exc


def load_bitmap(
    path: Path,
    *,
    max_edge: int | None = None,
) -> Image.Image:
    """
    Decode the first frame of ``path`` with EXIF orientation applied.

    Args:
        path: Image file to read.
        max_edge: Optional bound for the longest side of the result.

    Returns:
        A fully loaded RGB or RGBA image detached from the file.

    Raises:
        InputMissing: If the file is missing or unreadable.
        DecodeFailed: If the data cannot be decoded.

    """
    try:
        with Image.open(path) as img:
            img.seek(0)
            if max_edge is not None:
                img.draft(COLOR_MODE_RGB, (max_edge, max_edge))
            oriented = ImageOps.exif_transpose(img)
            has_alpha = (oriented.mode in ("RGBA", "LA", "PA")
                         or "transparency" in oriented.info)
            bitmap = oriented.convert(
                COLOR_MODE_RGBA if has_alpha else COLOR_MODE_RGB,
            )
    except FileNotFoundError as exc:
        msg = f"Image file not found: '{path}'"
        raise InputMissing(msg) from exc
    except PermissionError as exc:
        msg = f"Image file not readable: '{path}'"
        raise InputMissing(msg) from exc
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError,
            SyntaxError, ValueError) as exc:
        msg = f"Error loading image '{path}': {exc!s}"
        raise DecodeFailed(msg) from exc

    if max_edge is not None and max(bitmap.size) > max_edge:
        bitmap.thumbnail((max_edge, max_edge), Image.Resampling.LANCZOS)
    return bitmap


class DecoderPool:
    """Thread pool that validates and decodes images, caching bitmaps."""

    def __init__(
        self,
        workers: int | None = None,
        *,
        max_edge: int | None = None,
    ) -> None:
        self._workers = workers or default_worker_count()
        self._max_edge = max_edge
        self._cache: dict[Path, DecodedImage] = {}
        self._lock = threading.Lock()

    @property
    def workers(self) -> int:
        """Number of worker threads used for parallel work."""
        return self._workers

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    @staticmethod
    def _key(path: Path) -> Path:
        return Path(path).absolute()

    def cached(self, path: Path) -> DecodedImage | None:
        """Return the cached bitmap for ``path`` without decoding."""
        with self._lock:
            return self._cache.get(self._key(path))

    def decode(self, path: Path) -> DecodedImage:
        """
        Decode ``path`` once and return the cached result afterwards.

        Raises:
            InputMissing: If the file is missing or unreadable.
            DecodeFailed: If the data cannot be decoded.

        """
        key = self._key(path)
        with self._lock:
            hit = self._cache.get(key)
        if hit is not None:
            return hit
        decoded = DecodedImage(
            path=key,
            image=load_bitmap(key, max_edge=self._max_edge),
        )
        with self._lock:
            return self._cache.setdefault(key, decoded)

    def try_decode(self, path: Path) -> DecodedImage | None:
        """Decode ``path``, logging and returning None on failure."""
        try:
            return self.decode(path)
        except (InputMissing, DecodeFailed) as exc:
            logger.warning("%s", exc)
            return None

    def decode_many(self, paths: Sequence[Path]) -> list[DecodedImage | None]:
        """Decode paths in parallel, preserving order; failures are None."""
        if len(paths) <= 1:
            return [self.try_decode(p) for p in paths]
        with ThreadPoolExecutor(max_workers=self._workers) as executor:
            return list(executor.map(self.try_decode, paths))

    def validate(
        self,
        sources: Iterable[ImageSource],
        label_for: Callable[[Path], str],
    ) -> list[ImageEntry]:
        """
        Keep the sources Pillow can identify, preserving order.

        Each failure is reported as a warning and dropped.
        """
        items = list(sources)

        def check(source: ImageSource) -> ImageEntry | None:
            try:
                check_image(source.path)
            except (InputMissing, DecodeFailed) as exc:
                logger.warning("Skipping %s", exc)
                return None
            return ImageEntry(
                path=source.path,
                label=label_for(source.path),
                first_frame_only=source.first_frame_only,
            )

        with ThreadPoolExecutor(max_workers=self._workers) as executor:
            results = list(executor.map(check, items))
        return [entry for entry in results if entry is not None]

    def evict(self, path: Path) -> None:
        """Drop one cached bitmap."""
        with self._lock:
            self._cache.pop(self._key(path), None)

    def clear(self) -> None:
        """Drop every cached bitmap."""
        with self._lock:
            self._cache.clear()


__all__ = [
    "DecodedImage",
    "DecoderPool",
    "check_image",
    "default_worker_count",
    "load_bitmap",
]
