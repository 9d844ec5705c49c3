"""Compose a single row of labeled thumbnail tiles into one bitmap."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

from PIL import Image, ImageColor, ImageDraw, ImageFilter, ImageFont

from lsix.constants import (
    COLOR_BLACK,
    COLOR_MODE_RGB,
    COLOR_MODE_RGBA,
    SHADOW_ALPHA,
    SHADOW_OFFSET_DIVISOR,
)
from lsix.type_defs import RGB

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Sequence

    from lsix.layout import LayoutParameters

_LINE_SPACING = 2
_LABEL_GAP = 2


@dataclass(frozen=True)
class Tile:
    """One decoded image and the caption drawn beneath it."""

    image: Image.Image
    label: str


def parse_color(text: str) -> RGB:
    """Return an RGB triple for a CSS-style color name or hex string."""
    rgb = ImageColor.getrgb(text)
    return rgb[0], rgb[1], rgb[2]


def to_rgb(img: Image.Image, *, bg_color: RGB) -> Image.Image:
    """Convert PIL image to RGB, alpha compositing if needed."""
    if img.mode == COLOR_MODE_RGB:
        return img
    if img.mode in (COLOR_MODE_RGBA, "LA", "PA"):
        bg = Image.new(COLOR_MODE_RGBA, img.size, (*bg_color, 255))
        comp = Image.alpha_composite(bg, img.convert(COLOR_MODE_RGBA))
        return comp.convert(COLOR_MODE_RGB)
    return img.convert(COLOR_MODE_RGB)


def shrink_to_fit(img: Image.Image, box: tuple[int, int]) -> Image.Image:
    """Downscale ``img`` to fit ``box`` keeping aspect; never enlarge."""
    iw, ih = img.size
    scale = min(1.0, box[0] / iw, box[1] / ih)
    if scale >= 1.0:
        return img
    size = (max(1, int(iw * scale)), max(1, int(ih * scale)))
    return img.resize(size, Image.Resampling.LANCZOS)


def letterbox(
    img: Image.Image,
    box: tuple[int, int],
    bg_color: RGB,
    *,
    enlarge: bool = False,
) -> Image.Image:
    """
    Fit ``img`` inside ``box`` and center it on a solid background.

    Aspect ratio is preserved. With ``enlarge`` small images are scaled
    up to touch the box edges; otherwise they keep their size.
    """
    iw, ih = img.size
    scale = min(box[0] / iw, box[1] / ih)
    if not enlarge:
        scale = min(1.0, scale)
    rw, rh = max(1, int(iw * scale)), max(1, int(ih * scale))
    resized = img if (rw, rh) == img.size else img.resize(
        (rw, rh), Image.Resampling.LANCZOS,
    )
    canvas = Image.new(COLOR_MODE_RGB, box, bg_color)
    canvas.paste(to_rgb(resized, bg_color=bg_color),
                 ((box[0] - rw) // 2, (box[1] - rh) // 2))
    return canvas


@lru_cache(maxsize=8)
def _get_font(px: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a font at the given pixel size with fallback; cached."""
    try:
        return ImageFont.truetype("DejaVuSans.ttf", px)
    except OSError:
        return ImageFont.load_default(px)


def label_height(text: str, px: int) -> int:
    """Return the pixel height ``text`` occupies at font size ``px``."""
    if not text:
        return 0
    probe = ImageDraw.Draw(Image.new(COLOR_MODE_RGB, (1, 1)))
    bbox = probe.multiline_textbbox(
        (0, 0), text, font=_get_font(px), spacing=_LINE_SPACING,
    )
    return bbox[3]


def draw_label(
    canvas: Image.Image,
    center_x: int,
    top: int,
    text: str,
    px: int,
    fill: RGB,
) -> None:
    """Draw a multi-line label centered horizontally on ``center_x``."""
    if not text:
        return
    draw = ImageDraw.Draw(canvas)
    font = _get_font(px)
    bbox = draw.multiline_textbbox(
        (0, 0), text, font=font, spacing=_LINE_SPACING, align="center",
    )
    x = center_x - (bbox[2] - bbox[0]) // 2
    draw.multiline_text(
        (x, top), text, font=font, fill=fill,
        spacing=_LINE_SPACING, align="center",
    )


def _shadow_offset(params: LayoutParameters) -> int:
    return max(1, params.tile_w // SHADOW_OFFSET_DIVISOR)


def _drop_shadow(
    canvas: Image.Image,
    size: tuple[int, int],
    xy: tuple[int, int],
    offset: int,
) -> None:
    """Composite a soft shadow for a ``size`` box placed at ``xy``."""
    pad = offset * 2
    shadow = Image.new(
        COLOR_MODE_RGBA, (size[0] + 2 * pad, size[1] + 2 * pad),
        (*COLOR_BLACK, 0),
    )
    ImageDraw.Draw(shadow).rectangle(
        [pad, pad, pad + size[0] - 1, pad + size[1] - 1],
        fill=(*COLOR_BLACK, SHADOW_ALPHA),
    )
    shadow = shadow.filter(ImageFilter.GaussianBlur(radius=offset))
    canvas.alpha_composite(
        shadow,
        dest=(max(0, xy[0] + offset - pad), max(0, xy[1] + offset - pad)),
    )


def row_size(
    tiles: Sequence[Tile],
    params: LayoutParameters,
) -> tuple[int, int, int]:
    """Return ``(width, height, label_block_height)`` for a row."""
    label_block = max(
        (label_height(tile.label, params.font_size) for tile in tiles),
        default=0,
    )
    gap = _LABEL_GAP if label_block else 0
    width = len(tiles) * params.cell_w
    height = params.tile_h + label_block + gap + 2 * params.margin_y
    return width, height, label_block


def compose_row(
    tiles: Sequence[Tile],
    params: LayoutParameters,
) -> Image.Image:
    """
    Lay out ``tiles`` left to right in input order.

    Each tile occupies ``tile_w`` by ``tile_h`` pixels plus margins.
    Images larger than the tile are shrunk, smaller ones keep their
    size; both are centered in the tile. Labels sit beneath the tile.

    Raises:
        ValueError: If ``tiles`` is empty.

    """
    if not tiles:
        msg = "Cannot compose a row without tiles"
        raise ValueError(msg)

    bg = parse_color(params.bg)
    fg = parse_color(params.fg)
    width, height, _ = row_size(tiles, params)
    canvas = Image.new(COLOR_MODE_RGBA, (width, height), (*bg, 255))
    offset = _shadow_offset(params)

    for index, tile in enumerate(tiles):
        thumb = to_rgb(
            shrink_to_fit(tile.image, (params.tile_w, params.tile_h)),
            bg_color=bg,
        )
        cell_x = index * params.cell_w + params.margin_x
        x = cell_x + (params.tile_w - thumb.width) // 2
        y = params.margin_y + (params.tile_h - thumb.height) // 2
        if params.shadow:
            _drop_shadow(canvas, thumb.size, (x, y), offset)
        canvas.paste(thumb, (x, y))
        draw_label(
            canvas,
            cell_x + params.tile_w // 2,
            params.margin_y + params.tile_h + _LABEL_GAP,
            tile.label,
            params.font_size,
            fg,
        )

    return canvas.convert(COLOR_MODE_RGB)


__all__ = [
    "Tile",
    "compose_row",
    "draw_label",
    "label_height",
    "letterbox",
    "parse_color",
    "row_size",
    "shrink_to_fit",
    "to_rgb",
]
