"""Tests for grid browser navigation and paging."""
from __future__ import annotations

from pathlib import Path

import pytest

from lsix.browser.state import BrowserState, Outcome, fit_grid
from lsix.terminal.keys import Key
from lsix.type_defs import ImageEntry


def _items(count: int) -> list[ImageEntry]:
    return [ImageEntry(path=Path(f"img{i:02d}.png"), label=f"img{i:02d}")
            for i in range(count)]


@pytest.fixture
def state() -> BrowserState:
    """Twenty items on a five by three grid."""
    return BrowserState(items=_items(20), grid_cols=5, grid_rows=3)


class TestFitGrid:
    def test_capped_by_maximum(self) -> None:
        """A large terminal still shows at most the configured grid."""
        assert fit_grid(200, 60, 5, 3) == (5, 3)

    def test_reduced_for_small_terminal(self) -> None:
        """Rows shrink until each cell has its minimum height."""
        assert fit_grid(80, 24, 5, 3) == (5, 2)

    def test_never_below_one(self) -> None:
        """A tiny terminal still shows one cell."""
        assert fit_grid(10, 5, 5, 3) == (1, 1)


class TestBrowserState:
    def test_requires_items(self) -> None:
        """An empty browser cannot be built."""
        with pytest.raises(ValueError, match="at least one"):
            BrowserState(items=[])

    def test_paging_figures(self, state: BrowserState) -> None:
        """Twenty items at fifteen per page need two pages."""
        assert state.items_per_page == 15  # noqa: PLR2004
        assert state.page_count == 2  # noqa: PLR2004
        assert state.page_number == 1
        assert list(state.visible_indices()) == list(range(15))

    def test_page_down(self, state: BrowserState) -> None:
        """PageDown moves one page and shows the remainder."""
        assert state.handle(Key.PAGE_DOWN) is Outcome.REDRAW
        assert state.selected_index == 15  # noqa: PLR2004
        assert state.page_offset == 15  # noqa: PLR2004
        assert list(state.visible_indices()) == list(range(15, 20))

    def test_page_down_clamps(self, state: BrowserState) -> None:
        """PageDown near the end lands on the last item."""
        state.select(10)
        state.handle(Key.PAGE_DOWN)
        assert state.selected_index == 19  # noqa: PLR2004

    def test_page_up_clamps(self, state: BrowserState) -> None:
        """PageUp near the start lands on the first item."""
        state.select(3)
        state.handle(Key.PAGE_UP)
        assert state.selected_index == 0

    def test_down_wraps_to_top_row(self, state: BrowserState) -> None:
        """Down past the last row wraps to the same column on top."""
        state.select(18)
        state.handle(Key.DOWN)
        assert state.selected_index == 3  # noqa: PLR2004
        assert state.page_offset == 0

    def test_up_wraps_to_bottom_row(self, state: BrowserState) -> None:
        """Up from the top row wraps to the same column at the bottom."""
        state.select(2)
        state.handle(Key.UP)
        assert state.selected_index == 17  # noqa: PLR2004

    def test_up_wrap_with_short_last_row(self) -> None:
        """A short last row sends the wrap one row higher."""
        short = BrowserState(items=_items(18), grid_cols=5, grid_rows=3)
        short.select(4)
        short.handle(Key.UP)
        assert short.selected_index == 14  # noqa: PLR2004

    def test_left_right_clamp(self, state: BrowserState) -> None:
        """Horizontal moves stop at the ends without redrawing."""
        assert state.handle(Key.LEFT) is Outcome.UNCHANGED
        state.handle(Key.END)
        assert state.selected_index == 19  # noqa: PLR2004
        assert state.handle(Key.RIGHT) is Outcome.UNCHANGED

    def test_right_crosses_page(self, state: BrowserState) -> None:
        """Moving past the page end turns the page."""
        state.select(14)
        state.handle(Key.RIGHT)
        assert state.page_number == 2  # noqa: PLR2004

    def test_home(self, state: BrowserState) -> None:
        """Home returns to the first item."""
        state.select(17)
        state.handle(Key.HOME)
        assert state.selected_index == 0
        assert state.page_offset == 0

    def test_quit_keys(self, state: BrowserState) -> None:
        """Both q and Escape end the browser from the grid."""
        assert state.handle(Key.QUIT) is Outcome.QUIT
        assert state.handle(Key.ESCAPE) is Outcome.QUIT

    def test_fullscreen_round_trip(self, state: BrowserState) -> None:
        """Enter opens the selection; q returns to the grid."""
        state.select(7)
        assert state.handle(Key.ENTER) is Outcome.REDRAW
        assert state.fullscreen
        assert state.handle(Key.RIGHT) is Outcome.UNCHANGED
        assert state.selected_index == 7  # noqa: PLR2004
        assert state.handle(Key.QUIT) is Outcome.REDRAW
        assert not state.fullscreen
        assert state.selected_index == 7  # noqa: PLR2004

    def test_resize_keeps_selection_visible(
        self,
        state: BrowserState,
    ) -> None:
        """Shrinking the grid moves to the page holding the selection."""
        state.select(12)
        state.resize(2, 2)
        assert state.page_offset == 12  # noqa: PLR2004
        assert 12 in state.visible_indices()  # noqa: PLR2004
