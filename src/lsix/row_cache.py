"""
On-disk cache of encoded rows keyed by a content fingerprint.

An artifact is reused only when its fingerprint matches and it is at
least as new as every source image in the row. Writes go to a temporary
file in the cache directory followed by an atomic rename, so concurrent
processes never observe a partial artifact.
"""

from __future__ import annotations

import hashlib
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from lsix.config_defaults import CACHE_SUFFIX
from lsix.errors import CacheUnavailable
from lsix.logging_utils import logger

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Sequence

    from lsix.layout import LayoutParameters
    from lsix.type_defs import ImageEntry

_FINGERPRINT_BYTES = 8
_MISSING_MTIME = -1


def _mtime_ns(path: Path) -> int:
    try:
        return path.stat().st_mtime_ns
    except OSError:
        return _MISSING_MTIME


def row_fingerprint(
    entries: Sequence[ImageEntry],
    params: LayoutParameters,
) -> str:
    """
    Return a stable 64-bit hex fingerprint for one row.

    Covers each entry's absolute path, modification time and label, and
    every layout value that changes the rendered bytes.
    """
    digest = hashlib.blake2b(digest_size=_FINGERPRINT_BYTES)
    for entry in entries:
        digest.update(os.fsencode(entry.path.absolute()))
        digest.update(b"\0%d\0" % _mtime_ns(entry.path))
        digest.update(entry.label.encode("utf-8", "surrogateescape"))
        digest.update(b"\x1e")
    settings = (
        params.tile_w, params.tile_h, params.color_budget, params.bg,
        params.fg, params.shadow, params.margin_x, params.margin_y,
        params.font_size,
    )
    digest.update(repr(settings).encode("utf-8"))
    return digest.hexdigest()


class RowCache:
    """Read and write row artifacts in a per-user directory."""

    def __init__(self, directory: Path, *, enabled: bool = True) -> None:
        self.directory = Path(directory)
        self.enabled = enabled

    def path_for(self, fingerprint: str) -> Path:
        """Return the artifact path for ``fingerprint``."""
        return self.directory / f"{fingerprint}{CACHE_SUFFIX}"

    def _read(
        self,
        fingerprint: str,
        entries: Sequence[ImageEntry],
    ) -> bytes | None:
        path = self.path_for(fingerprint)
        try:
            artifact_mtime = path.stat().st_mtime_ns
        except FileNotFoundError:
            return None
        except OSError as exc:
            msg = f"Cannot stat cache artifact {path}: {exc}"
            raise CacheUnavailable(msg) from exc
        for entry in entries:
            source_mtime = _mtime_ns(entry.path)
            if source_mtime == _MISSING_MTIME or source_mtime > artifact_mtime:
                return None
        try:
            return path.read_bytes()
        except OSError as exc:
            msg = f"Cannot read cache artifact {path}: {exc}"
            raise CacheUnavailable(msg) from exc

    def _write(self, fingerprint: str, data: bytes) -> None:
        target = self.path_for(fingerprint)
        temp_path: Path | None = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=self.directory,
                prefix=f".{fingerprint}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_path = Path(handle.name)
                handle.write(data)
            os.replace(temp_path, target)
        except OSError as exc:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            msg = f"Cannot write cache artifact {target}: {exc}"
            raise CacheUnavailable(msg) from exc

    def load(
        self,
        fingerprint: str,
        entries: Sequence[ImageEntry],
    ) -> bytes | None:
        """Return a valid artifact, or None on miss, staleness or error."""
        if not self.enabled:
            return None
        try:
            data = self._read(fingerprint, entries)
        except CacheUnavailable as exc:
            logger.debug("%s", exc)
            return None
        if data is not None:
            logger.debug("Row cache hit: %s", fingerprint)
        return data

    def store(self, fingerprint: str, data: bytes) -> None:
        """Persist ``data`` atomically; failures are logged and ignored."""
        if not self.enabled or not data:
            return
        try:
            self._write(fingerprint, data)
        except CacheUnavailable as exc:
            logger.debug("%s", exc)

    def clear(self) -> int:
        """Delete every artifact and return how many were removed."""
        if not self.directory.is_dir():
            return 0
        removed = 0
        for artifact in self.directory.glob(f"*{CACHE_SUFFIX}"):
            try:
                artifact.unlink()
            except OSError as exc:
                logger.warning("Could not remove %s: %s", artifact, exc)
                continue
            removed += 1
        return removed


__all__ = ["RowCache", "row_fingerprint"]
