"""Tests for deriving montage layout parameters."""
from __future__ import annotations

import pytest

from lsix.config import LayoutSettings
from lsix.layout import derive_layout, tiles_per_row_for
from lsix.terminal.probe import TerminalProfile


def _profile(width: int) -> TerminalProfile:
    return TerminalProfile(graphics_supported=True, pixel_width=width)


class TestDeriveLayout:
    def test_defaults_on_1920(self) -> None:
        """A 1920 px terminal fits five default tiles."""
        params = derive_layout(_profile(1920), LayoutSettings())
        assert params.tile_w == params.tile_h == 360  # noqa: PLR2004
        assert params.margin_x == 9  # noqa: PLR2004
        assert params.margin_y == 4  # noqa: PLR2004
        assert params.tiles_per_row == 5  # noqa: PLR2004
        assert params.font_size == 36  # noqa: PLR2004
        assert params.color_budget == 256  # noqa: PLR2004
        assert params.shadow is False
        assert params.bg == "#282a36"
        assert params.fg == "white"

    def test_1024_fits_two(self) -> None:
        """A 1024 px terminal fits two tiles."""
        params = derive_layout(_profile(1024), LayoutSettings())
        assert params.margin_x == 5  # noqa: PLR2004
        assert params.tiles_per_row == 2  # noqa: PLR2004

    @pytest.mark.parametrize("width", [1, 50, 200, 360])
    def test_narrow_terminal_still_one_tile(self, width: int) -> None:
        """At least one tile fits however narrow the terminal."""
        assert derive_layout(_profile(width), LayoutSettings()).tiles_per_row == 1

    @pytest.mark.parametrize(("tile", "font"), [(40, 10), (99, 10), (250, 25)])
    def test_font_size_floor(self, tile: int, font: int) -> None:
        """Font size follows the tile but never drops below ten."""
        params = derive_layout(_profile(1920), LayoutSettings(tile_size=tile))
        assert params.font_size == font

    def test_overrides_take_precedence(self) -> None:
        """Tile size, colors and shadow come from settings when set."""
        settings = LayoutSettings(tile_size=120, colors=64, shadow=True)
        params = derive_layout(_profile(1920), settings)
        assert params.tile_w == 120  # noqa: PLR2004
        assert params.color_budget == 64  # noqa: PLR2004
        assert params.shadow is True
        assert params.tiles_per_row == 1920 // (120 + 18 + 1)

    def test_cell_width(self) -> None:
        """Cell width includes the margins on both sides."""
        params = derive_layout(_profile(1920), LayoutSettings())
        assert params.cell_w == 378  # noqa: PLR2004


def test_tiles_per_row_formula() -> None:
    """The divisor includes both margins and one spare pixel."""
    assert tiles_per_row_for(1000, 100, 10) == 1000 // 121
