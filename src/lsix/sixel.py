"""
Quantize a bitmap and encode it as a sixel graphics stream.

The stream is a DCS introducer, raster attributes, one palette entry
per used color register, six-pixel bands with run-length compression,
and a string terminator.
"""

from __future__ import annotations

import numpy as np
from PIL import Image

from lsix.constants import (
    COLOR_MODE_RGB,
    SIXEL_BAND_HEIGHT,
    SIXEL_CHAR_OFFSET,
    SIXEL_MAX_REGISTERS,
    SIXEL_RLE_MIN,
    STRING_TERMINATOR,
)
from lsix.errors import EncodeFailed

SIXEL_INTRODUCER = b"\x1bPq"
SIXEL_TERMINATOR = STRING_TERMINATOR.encode("ascii")
_BAND_WEIGHTS = (1 << np.arange(SIXEL_BAND_HEIGHT, dtype=np.uint8))[:, None]
_MIN_REGISTERS = 2


def quantize(img: Image.Image, colors: int) -> Image.Image:
    """Reduce ``img`` to a paletted image with at most ``colors`` entries."""
    budget = max(_MIN_REGISTERS, min(colors, SIXEL_MAX_REGISTERS))
    return img.convert(COLOR_MODE_RGB).quantize(colors=budget)


def _run_length(chars: np.ndarray) -> bytes:
    """Compress a band line with ``!count`` repeat introducers."""
    boundaries = np.flatnonzero(np.diff(chars)) + 1
    starts = np.concatenate(([0], boundaries))
    lengths = np.diff(np.concatenate((starts, [len(chars)])))
    out = bytearray()
    for start, length in zip(starts.tolist(), lengths.tolist(), strict=True):
        char = int(chars[start])
        if length >= SIXEL_RLE_MIN:
            out += b"!%d" % length
            out.append(char)
        else:
            out += bytes((char,)) * length
    return bytes(out)


def _palette_entries(palette: list[int], used: np.ndarray) -> bytes:
    out = bytearray()
    for index in used.tolist():
        r, g, b = palette[3 * index: 3 * index + 3]
        out += b"#%d;2;%d;%d;%d" % (
            index,
            round(r * 100 / 255),
            round(g * 100 / 255),
            round(b * 100 / 255),
        )
    return bytes(out)


def _encode_band(band: np.ndarray) -> bytes:
    """Encode up to six pixel rows of palette indices."""
    rows = band.shape[0]
    weights = _BAND_WEIGHTS[:rows]
    lines = []
    for color in np.unique(band).tolist():
        bits = ((band == color) * weights).sum(axis=0, dtype=np.uint8)
        last = np.flatnonzero(bits)
        if last.size == 0:
            continue
        chars = bits[: last[-1] + 1] + SIXEL_CHAR_OFFSET
        lines.append(b"#%d" % color + _run_length(chars))
    return b"$".join(lines)


def encode_indices(indices: np.ndarray, palette: list[int]) -> bytes:
    """
    Encode a 2D array of palette indices as a complete sixel stream.

    Args:
        indices: ``(height, width)`` array of palette register numbers.
        palette: Flat ``[r, g, b, ...]`` list covering every index used.

    Returns:
        The sixel bytes, terminator included.

    """
    height, width = indices.shape
    used = np.unique(indices)
    bands = [
        _encode_band(indices[y: y + SIXEL_BAND_HEIGHT])
        for y in range(0, height, SIXEL_BAND_HEIGHT)
    ]
    return b"".join((
        SIXEL_INTRODUCER,
        b'"1;1;%d;%d' % (width, height),
        _palette_entries(palette, used),
        b"-".join(bands),
        SIXEL_TERMINATOR,
    ))


def encode_sixel(img: Image.Image, colors: int) -> bytes:
    """
    Quantize ``img`` to ``colors`` registers and encode it as sixel.

    Raises:
        EncodeFailed: If the image is empty or cannot be quantized.

    """
    if img.width == 0 or img.height == 0:
        msg = f"Cannot encode an empty image of size {img.size}"
        raise EncodeFailed(msg)
    try:
        paletted = quantize(img, colors)
    except (ValueError, OSError, MemoryError) as exc:
        msg = f"Error quantizing image: {exc!s}"
        raise EncodeFailed(msg) from exc
    palette = paletted.getpalette() or []
    indices = np.asarray(paletted, dtype=np.uint8)
    if not palette or 3 * (int(indices.max()) + 1) > len(palette):
        msg = "Quantized palette does not cover every pixel"
        raise EncodeFailed(msg)
    return encode_indices(indices, palette)


__all__ = [
    "SIXEL_INTRODUCER",
    "SIXEL_TERMINATOR",
    "encode_indices",
    "encode_sixel",
    "quantize",
]
