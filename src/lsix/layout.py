"""Derive montage geometry from the terminal profile and overrides."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from lsix.constants import FONT_DIVISOR, MARGIN_DIVISOR, MIN_FONT_SIZE

if TYPE_CHECKING:  # pragma: no cover
    from lsix.config import LayoutSettings
    from lsix.terminal.probe import TerminalProfile


@dataclass(frozen=True)
class LayoutParameters:
    """Pixel geometry and colors shared by every row of a montage."""

    tile_w: int
    tile_h: int
    margin_x: int
    margin_y: int
    tiles_per_row: int
    font_size: int
    color_budget: int
    bg: str
    fg: str
    shadow: bool = False

    @property
    def cell_w(self) -> int:
        """Width of one tile including its horizontal margins."""
        return self.tile_w + 2 * self.margin_x


def tiles_per_row_for(pixel_width: int, tile_w: int, margin_x: int) -> int:
    """Return how many tiles fit across ``pixel_width``, at least one."""
    return max(1, pixel_width // (tile_w + 2 * margin_x + 1))


def derive_layout(
    profile: TerminalProfile,
    settings: LayoutSettings,
) -> LayoutParameters:
    """
    Compute layout parameters for ``profile``.

    Tile size, color budget and shadow come from ``settings`` when set;
    margins, tiles per row and font size follow from the pixel width
    and tile size.
    """
    tile = settings.tile_size
    margin_x = profile.pixel_width // MARGIN_DIVISOR
    margin_y = margin_x // 2
    color_budget = (settings.colors if settings.colors is not None
                    else profile.color_budget)
    return LayoutParameters(
        tile_w=tile,
        tile_h=tile,
        margin_x=margin_x,
        margin_y=margin_y,
        tiles_per_row=tiles_per_row_for(profile.pixel_width, tile, margin_x),
        font_size=max(MIN_FONT_SIZE, tile // FONT_DIVISOR),
        color_budget=color_budget,
        bg=profile.background_color,
        fg=profile.foreground_color,
        shadow=settings.shadow,
    )


__all__ = ["LayoutParameters", "derive_layout", "tiles_per_row_for"]
