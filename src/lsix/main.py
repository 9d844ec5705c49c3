"""
Top-level pipelines for listing and browsing images.

``list_images`` streams montage rows to stdout; ``browse_images`` runs the
interactive grid browser. Both probe the terminal, resolve sources and
validate them before doing anything visible.
"""

from __future__ import annotations

import functools
import sys
from typing import TYPE_CHECKING, BinaryIO

from lsix.browser import run_browser
from lsix.decoder import DecoderPool
from lsix.labels import make_label
from lsix.layout import derive_layout
from lsix.logging_utils import logger
from lsix.output import stream_rows
from lsix.renderer import render_row
from lsix.row_cache import RowCache
from lsix.sources import resolve_sources
from lsix.terminal.lifecycle import TerminalSession
from lsix.terminal.probe import probe_terminal

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from lsix.config import LsixConfig
    from lsix.terminal.probe import TerminalProfile
    from lsix.type_defs import ImageEntry

NO_IMAGES_MESSAGE = "No image files found."


def default_prober(cfg: LsixConfig) -> TerminalProfile:
    """Probe the terminal using the configured overrides."""
    return probe_terminal(cfg.terminal, color_budget=cfg.layout.colors)


def collect_entries(
    paths: Sequence[str | Path],
    cfg: LsixConfig,
    decoder: DecoderPool,
    *,
    recursive: bool = False,
) -> list[ImageEntry]:
    """Resolve and validate the images named on the command line."""
    sources = resolve_sources(paths, recursive=recursive, explicit=True)
    if not sources:
        return []
    mode = cfg.layout.label_mode
    entries = decoder.validate(
        sources, lambda path: make_label(path, mode),
    )
    if not entries:
        logger.warning("None of the %d candidate files could be read",
                       len(sources))
    return entries


def list_images(  # noqa: PLR0913
    paths: Sequence[str | Path],
    cfg: LsixConfig,
    *,
    recursive: bool = False,
    sink: BinaryIO | None = None,
    session: TerminalSession | None = None,
    prober: Callable[[LsixConfig], TerminalProfile] = default_prober,
) -> int:
    """
    Print thumbnail montages of ``paths`` as sixel rows.

    Returns:
        The number of rows written.

    Raises:
        EnvironmentUnsupported: If the terminal cannot show sixel.
        OutputClosed: If stdout was closed by the reader.

    """
    out = sink if sink is not None else sys.stdout.buffer
    with session if session is not None else TerminalSession():
        profile = prober(cfg)
        params = derive_layout(profile, cfg.layout)
        logger.debug("Layout: %s", params)
        decoder = DecoderPool(max_edge=params.tile_w)
        entries = collect_entries(paths, cfg, decoder, recursive=recursive)
        if not entries:
            logger.warning(NO_IMAGES_MESSAGE)
            return 0
        cache = RowCache(cfg.cache.resolve_directory(),
                         enabled=cfg.cache.enabled)
        render = functools.partial(render_row, params=params,
                                   decoder=decoder, cache=cache)
        return stream_rows(entries, params.tiles_per_row,
                           render=render, sink=out,
                           workers=decoder.workers)


def browse_images(
    paths: Sequence[str | Path],
    cfg: LsixConfig,
    *,
    recursive: bool = False,
    session: TerminalSession | None = None,
    prober: Callable[[LsixConfig], TerminalProfile] = default_prober,
) -> int:
    """
    Open the interactive browser over ``paths``.

    Returns:
        The number of images offered to the browser.

    """
    quiet_cfg = cfg.model_copy(update={
        "terminal": cfg.terminal.model_copy(update={"skip_queries": True}),
    })
    with session if session is not None else TerminalSession() as active:
        profile = prober(quiet_cfg)
        decoder = DecoderPool(
            max_edge=cfg.browser.fullscreen_max_dimension,
        )
        entries = collect_entries(paths, cfg, decoder, recursive=recursive)
        if not entries:
            logger.warning(NO_IMAGES_MESSAGE)
            return 0
        logger.info("Found %d images to browse.", len(entries))
        run_browser(entries, decoder=decoder, profile=profile,
                    settings=cfg.browser, session=active)
        return len(entries)


def clear_cache(cfg: LsixConfig) -> int:
    """Delete every cached row artifact and return how many were removed."""
    removed = RowCache(cfg.cache.resolve_directory()).clear()
    logger.info("Removed %d cached rows from %s", removed,
                cfg.cache.resolve_directory())
    return removed


__all__ = [
    "NO_IMAGES_MESSAGE",
    "browse_images",
    "clear_cache",
    "collect_entries",
    "default_prober",
    "list_images",
]
