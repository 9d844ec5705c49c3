"""
Resolve command-line arguments into a sorted list of image sources.

Directories are scanned for known image extensions; files are kept when
their extension matches. Multi-frame formats found by scanning are
marked so only their first frame is decoded.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from lsix.config_defaults import FIRST_FRAME_EXTENSIONS, IMAGE_EXTENSIONS
from lsix.logging_utils import logger
from lsix.type_defs import ImageSource

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterable, Iterator, Sequence


def extension_of(path: Path) -> str:
    """Return the lower-cased extension without the leading dot."""
    return path.suffix.lower().lstrip(".")


def is_image_path(path: Path) -> bool:
    """Return True when ``path`` has a recognized image extension."""
    return extension_of(path) in IMAGE_EXTENSIONS


def _scan_errors(exc: OSError) -> None:
    logger.warning("Skipping unreadable entry %s: %s",
                   exc.filename, exc.strerror)


def iter_directory(directory: Path, *, recursive: bool) -> Iterator[Path]:
    """Yield image files inside ``directory``."""
    if recursive:
        logger.debug("Scanning directory recursively: %s", directory)
        for root, dirs, files in os.walk(directory, onerror=_scan_errors):
            dirs.sort()
            for name in files:
                candidate = Path(root) / name
                if is_image_path(candidate):
                    yield candidate
        return

    logger.debug("Scanning directory: %s", directory)
    try:
        children = list(directory.iterdir())
    except OSError as exc:
        _scan_errors(exc)
        return
    for child in children:
        try:
            is_file = child.is_file()
        except OSError as exc:
            _scan_errors(exc)
            continue
        if is_file and is_image_path(child):
            yield child


def resolve_sources(
    args: Sequence[str | Path],
    *,
    recursive: bool = False,
    explicit: bool = True,
    cwd: Path | None = None,
) -> list[ImageSource]:
    """
    Turn command-line arguments into image sources.

    With no arguments the working directory is scanned without
    recursion. Results are sorted lexicographically by path and
    de-duplicated. gif and webp files reached by scanning a directory,
    or any of them when ``explicit`` is false, carry
    ``first_frame_only``.

    Args:
        args: Files and directories named on the command line.
        recursive: Descend into sub-directories of directory arguments.
        explicit: Whether file arguments were named by the user.
        cwd: Directory scanned when ``args`` is empty.

    Returns:
        The resolved sources, possibly empty.

    """
    found: dict[Path, bool] = {}

    def add(paths: Iterable[Path], *, scanned: bool) -> None:
        for path in paths:
            first_only = (extension_of(path) in FIRST_FRAME_EXTENSIONS
                          and (scanned or not explicit))
            found[path] = found.get(path, False) or first_only

    if not args:
        base = cwd or Path.cwd()
        add(iter_directory(base, recursive=False), scanned=True)
    for arg in args:
        path = Path(arg)
        try:
            if path.is_dir():
                add(iter_directory(path, recursive=recursive), scanned=True)
                continue
            exists = path.exists()
        except OSError as exc:
            logger.warning("Skipping unreadable path %s: %s", path, exc)
            continue
        if not exists:
            logger.warning("No such file: %s", path)
        elif is_image_path(path):
            add([path], scanned=False)
        else:
            logger.debug("Ignoring non-image file: %s", path)

    return [
        ImageSource(path=path, first_frame_only=first_only)
        for path, first_only in sorted(found.items(),
                                       key=lambda item: str(item[0]))
    ]


__all__ = ["extension_of", "is_image_path", "iter_directory",
           "resolve_sources"]
