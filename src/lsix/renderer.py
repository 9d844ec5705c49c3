"""Render one montage row to sixel bytes, consulting the row cache."""

from __future__ import annotations

from typing import TYPE_CHECKING

from lsix.errors import EncodeFailed
from lsix.logging_utils import logger
from lsix.montage import Tile, compose_row
from lsix.row_cache import row_fingerprint
from lsix.sixel import encode_sixel

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Sequence

    from lsix.decoder import DecoderPool
    from lsix.layout import LayoutParameters
    from lsix.row_cache import RowCache
    from lsix.type_defs import ImageEntry


def render_row(
    entries: Sequence[ImageEntry],
    params: LayoutParameters,
    *,
    decoder: DecoderPool,
    cache: RowCache | None = None,
) -> bytes:
    """
    Return the sixel bytes for one row of ``entries``.

    A valid cached artifact is returned as is. Otherwise the row is
    composed from the decodable entries, encoded and stored. Entries that
    fail to decode are left out of the row; a row with no decodable entry
    or an encoder failure yields empty bytes after a warning.
    """
    fingerprint = row_fingerprint(entries, params)
    if cache is not None:
        cached = cache.load(fingerprint, entries)
        if cached is not None:
            return cached

    tiles: list[Tile] = []
    for entry in entries:
        decoded = decoder.try_decode(entry.path)
        if decoded is not None:
            tiles.append(Tile(image=decoded.image, label=entry.label))
    complete = len(tiles) == len(entries)

    if not tiles:
        logger.warning("Skipping row: none of %d images could be decoded",
                       len(entries))
        return b""

    try:
        data = encode_sixel(compose_row(tiles, params), params.color_budget)
    except EncodeFailed as exc:
        logger.warning("Skipping row: %s", exc)
        return b""
    finally:
        for entry in entries:
            decoder.evict(entry.path)

    if cache is not None and complete:
        cache.store(fingerprint, data)
    return data


__all__ = ["render_row"]
