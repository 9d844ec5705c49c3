"""
Selection, pagination and mode state for the grid browser.

Everything here is pure: key handling returns whether a redraw is
needed and never touches the terminal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from lsix.constants import (
    BROWSER_HEADER_ROWS,
    BROWSER_MIN_CELL_COLS,
    BROWSER_MIN_CELL_ROWS,
    BROWSER_STATUS_ROWS,
)
from lsix.terminal.keys import Key

if TYPE_CHECKING:  # pragma: no cover
    from lsix.decoder import DecodedImage
    from lsix.type_defs import ImageEntry


class Outcome(Enum):
    """What the event loop should do after a key."""

    UNCHANGED = "unchanged"
    REDRAW = "redraw"
    QUIT = "quit"


def fit_grid(
    term_cols: int,
    term_rows: int,
    max_cols: int,
    max_rows: int,
) -> tuple[int, int]:
    """
    Return ``(grid_cols, grid_rows)`` for a terminal of the given size.

    Both are capped at the configured maximum and reduced until each
    cell is at least the minimum size; neither drops below one.
    """
    usable_rows = term_rows - BROWSER_HEADER_ROWS - BROWSER_STATUS_ROWS
    cols = min(max_cols, term_cols // BROWSER_MIN_CELL_COLS)
    rows = min(max_rows, usable_rows // BROWSER_MIN_CELL_ROWS)
    return max(1, cols), max(1, rows)


@dataclass
class BrowserState:
    """Mutable state owned by the browser's single thread."""

    items: list[ImageEntry]
    grid_cols: int = 1
    grid_rows: int = 1
    selected_index: int = 0
    page_offset: int = 0
    fullscreen: bool = False
    decoded_cache: dict[int, DecodedImage | None] = field(
        default_factory=dict,
    )

    def __post_init__(self) -> None:
        if not self.items:
            msg = "BrowserState needs at least one item"
            raise ValueError(msg)
        self.resize(self.grid_cols, self.grid_rows)

    @property
    def items_per_page(self) -> int:
        """Number of cells on one page."""
        return self.grid_cols * self.grid_rows

    @property
    def page_count(self) -> int:
        """Total number of pages."""
        return -(-len(self.items) // self.items_per_page)

    @property
    def page_number(self) -> int:
        """One-based number of the page holding the selection."""
        return self.page_offset // self.items_per_page + 1

    @property
    def selected(self) -> ImageEntry:
        """The currently selected entry."""
        return self.items[self.selected_index]

    def visible_indices(self) -> range:
        """Indices of the items drawn on the current page."""
        end = min(len(self.items), self.page_offset + self.items_per_page)
        return range(self.page_offset, end)

    def resize(self, grid_cols: int, grid_rows: int) -> None:
        """Apply new grid dimensions and re-derive the page."""
        self.grid_cols = max(1, grid_cols)
        self.grid_rows = max(1, grid_rows)
        self._sync_page(force=True)

    def _sync_page(self, *, force: bool = False) -> None:
        ipp = self.items_per_page
        on_page = (self.page_offset <= self.selected_index
                   < self.page_offset + ipp)
        if force or not on_page:
            self.page_offset = (self.selected_index // ipp) * ipp

    def select(self, index: int) -> bool:
        """Move the selection, clamped to valid indices."""
        index = max(0, min(index, len(self.items) - 1))
        if index == self.selected_index:
            return False
        self.selected_index = index
        self._sync_page()
        return True

    def _move_down(self) -> bool:
        col = self.selected_index % self.grid_cols
        below = self.selected_index + self.grid_cols
        return self.select(below if below < len(self.items) else col)

    def _move_up(self) -> bool:
        col = self.selected_index % self.grid_cols
        if self.selected_index >= self.grid_cols:
            return self.select(self.selected_index - self.grid_cols)
        last_row = (len(self.items) - 1) // self.grid_cols
        target = last_row * self.grid_cols + col
        if target >= len(self.items):
            target -= self.grid_cols
        return self.select(target)

    def _handle_grid(self, key: Key) -> Outcome:
        ipp = self.items_per_page
        moves = {
            Key.LEFT: lambda: self.select(self.selected_index - 1),
            Key.RIGHT: lambda: self.select(self.selected_index + 1),
            Key.DOWN: self._move_down,
            Key.UP: self._move_up,
            Key.PAGE_UP: lambda: self.select(self.selected_index - ipp),
            Key.PAGE_DOWN: lambda: self.select(self.selected_index + ipp),
            Key.HOME: lambda: self.select(0),
            Key.END: lambda: self.select(len(self.items) - 1),
        }
        if key in (Key.QUIT, Key.ESCAPE):
            return Outcome.QUIT
        if key is Key.ENTER:
            self.fullscreen = True
            return Outcome.REDRAW
        move = moves.get(key)
        if move is not None and move():
            return Outcome.REDRAW
        return Outcome.UNCHANGED

    def handle(self, key: Key) -> Outcome:
        """Apply ``key`` and report what the event loop should do."""
        if self.fullscreen:
            if key in (Key.QUIT, Key.ESCAPE):
                self.fullscreen = False
                return Outcome.REDRAW
            return Outcome.UNCHANGED
        return self._handle_grid(key)


__all__ = ["BrowserState", "Outcome", "fit_grid"]
