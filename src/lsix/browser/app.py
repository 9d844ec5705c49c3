"""
Full-screen grid browser drawn with ANSI boxes and sixel thumbnails.

The loop polls input with a short timeout and redraws only after a key
changed the state or the terminal was resized. Images are decoded lazily
on first display; a failure leaves the cell empty.
"""

from __future__ import annotations

import contextlib
import fcntl
import os
import select
import signal
import struct
import termios
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from lsix.constants import (
    BROWSER_FALLBACK_CELL_PX,
    BROWSER_HEADER_ROWS,
    BROWSER_STATUS_ROWS,
    CLEAR_SCREEN,
    COLOR_HIGHLIGHT,
    COLOR_RESET,
    SIXEL_BAND_HEIGHT,
)
from lsix.errors import EncodeFailed
from lsix.logging_utils import logger, suspend_console_logging
from lsix.montage import letterbox, parse_color
from lsix.sixel import encode_sixel
from lsix.terminal.keys import decode_keys

from .state import BrowserState, Outcome, fit_grid

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterator

    from lsix.config import BrowserSettings
    from lsix.decoder import DecodedImage, DecoderPool
    from lsix.terminal.lifecycle import TerminalSession
    from lsix.terminal.probe import TerminalProfile
    from lsix.type_defs import ImageEntry

_WINSIZE = struct.Struct("HHHH")
_BOX = {"tl": "┌", "tr": "┐", "bl": "└", "br": "┘", "h": "─", "v": "│"}
_STATUS_HELP = "q: Quit | Arrows: Nav | Enter: View | PgUp/PgDn: Page"
_DEFAULT_TERMINAL_SIZE = (80, 24)


def move_to(row: int, col: int) -> str:
    """Return the escape sequence placing the cursor at 1-based row, col."""
    return f"\x1b[{row};{col}H"


def _fallback_size(fd: int) -> os.terminal_size:
    try:
        return os.get_terminal_size(fd)
    except OSError:
        return os.terminal_size(_DEFAULT_TERMINAL_SIZE)


def terminal_geometry(fd: int) -> tuple[int, int, int, int]:
    """Return ``(cols, rows, x_pixels, y_pixels)`` for the terminal on fd."""
    try:
        packed = fcntl.ioctl(fd, termios.TIOCGWINSZ, b"\0" * _WINSIZE.size)
    except OSError:
        size = _fallback_size(fd)
        return size.columns, size.lines, 0, 0
    rows, cols, xpixel, ypixel = _WINSIZE.unpack(packed)
    if not cols or not rows:
        size = _fallback_size(fd)
        return size.columns, size.lines, 0, 0
    return cols, rows, xpixel, ypixel


def cell_pixel_size(
    cols: int,
    rows: int,
    xpixel: int,
    ypixel: int,
    profile_width: int | None = None,
) -> tuple[int, int]:
    """
    Return the pixel size of one character cell.

    Uses the kernel's pixel report when present, then the probed pixel
    width with a 1:2 aspect, then a fixed fallback.
    """
    if xpixel and ypixel and cols and rows:
        return max(1, xpixel // cols), max(1, ypixel // rows)
    if profile_width and cols:
        width = max(1, profile_width // cols)
        return width, width * 2
    return BROWSER_FALLBACK_CELL_PX


def box(top: int, left: int, width: int, height: int,
        *, title: str = "", highlight: bool = False) -> str:
    """Return escape text drawing a box whose corner is at ``top, left``."""
    if width < 2 or height < 2:  # noqa: PLR2004
        return ""
    inner = width - 2
    label = title[:inner]
    top_line = (_BOX["tl"] + label + _BOX["h"] * (inner - len(label))
                + _BOX["tr"])
    parts = [COLOR_HIGHLIGHT if highlight else "",
             move_to(top, left), top_line]
    for offset in range(1, height - 1):
        parts.append(move_to(top + offset, left) + _BOX["v"])
        parts.append(move_to(top + offset, left + width - 1) + _BOX["v"])
    parts.append(move_to(top + height - 1, left)
                 + _BOX["bl"] + _BOX["h"] * inner + _BOX["br"])
    if highlight:
        parts.append(COLOR_RESET)
    return "".join(parts)


@contextlib.contextmanager
def watch_resize(flag: list[bool]) -> Iterator[None]:
    """Set ``flag[0]`` whenever the terminal reports a size change."""

    def on_winch(_signum: int, _frame: object) -> None:
        flag[0] = True

    previous = signal.signal(signal.SIGWINCH, on_winch)
    try:
        yield
    finally:
        signal.signal(signal.SIGWINCH, previous)


class BrowserApp:
    """Draw ``BrowserState`` to the terminal and feed it key presses."""

    def __init__(  # noqa: PLR0913
        self,
        state: BrowserState,
        *,
        decoder: DecoderPool,
        profile: TerminalProfile,
        settings: BrowserSettings,
        screen: BinaryIO,
        input_fd: int,
    ) -> None:
        self.state = state
        self.decoder = decoder
        self.profile = profile
        self.settings = settings
        self.screen = screen
        self.input_fd = input_fd
        self.bg = parse_color(profile.background_color)
        self.cwd = str(Path.cwd())
        self._encoded: dict[tuple[int, int, int], bytes] = {}
        self._geometry = (80, 24, 0, 0)

    # Geometry

    def refresh_geometry(self) -> None:
        """Re-read the terminal size and refit the grid."""
        self._geometry = terminal_geometry(self.input_fd)
        cols, rows, _, _ = self._geometry
        grid_cols, grid_rows = fit_grid(
            cols, rows, self.settings.max_cols, self.settings.max_rows,
        )
        self.state.resize(grid_cols, grid_rows)

    def _cell_px(self) -> tuple[int, int]:
        cols, rows, xpixel, ypixel = self._geometry
        probed = (self.profile.pixel_width
                  if self.profile.pixel_width_measured else None)
        return cell_pixel_size(cols, rows, xpixel, ypixel, probed)

    # Images

    def image_for(self, index: int) -> DecodedImage | None:
        """Decode the item at ``index`` once; failures are remembered."""
        cache = self.state.decoded_cache
        if index not in cache:
            cache[index] = self.decoder.try_decode(self.state.items[index].path)
        return cache[index]

    def _sixel_for(
        self,
        index: int,
        box_px: tuple[int, int],
        *,
        enlarge: bool,
    ) -> bytes:
        key = (index, *box_px)
        if key in self._encoded:
            return self._encoded[key]
        decoded = self.image_for(index)
        data = b""
        if decoded is not None and min(box_px) > 0:
            framed = letterbox(decoded.image, box_px, self.bg,
                               enlarge=enlarge)
            try:
                data = encode_sixel(framed, self.profile.color_budget)
            except EncodeFailed as exc:
                logger.debug("Cell %d not drawn: %s", index, exc)
        self._encoded[key] = data
        return data

    # Drawing

    def _status(self, text: str, top: int, width: int) -> str:
        return (box(top, 1, width, BROWSER_STATUS_ROWS)
                + move_to(top + 1, 2) + text[: max(0, width - 2)])

    def render_grid(self) -> bytes:
        """Return the bytes for a full grid frame."""
        cols, rows, _, _ = self._geometry
        state = self.state
        cw, ch = self._cell_px()
        title = (f" Image Grid ({state.grid_cols}x{state.grid_rows})"
                 f" - Page {state.page_number}/{state.page_count} ")
        out = bytearray()
        text = [CLEAR_SCREEN,
                box(1, 1, cols, BROWSER_HEADER_ROWS),
                move_to(2, 2), f"TUI Image Browser - {self.cwd}"[: cols - 2],
                move_to(BROWSER_HEADER_ROWS, 3), title[: max(0, cols - 4)]]
        out += "".join(text).encode("utf-8", "replace")

        grid_top = BROWSER_HEADER_ROWS + 1
        grid_height = rows - BROWSER_HEADER_ROWS - BROWSER_STATUS_ROWS
        cell_w = cols // state.grid_cols
        cell_h = max(2, grid_height // state.grid_rows)
        for slot, index in enumerate(state.visible_indices()):
            row, col = divmod(slot, state.grid_cols)
            top = grid_top + row * cell_h
            left = 1 + col * cell_w
            entry = state.items[index]
            name = f" {entry.path.name} "
            selected = index == state.selected_index
            out += box(top, left, cell_w, cell_h, title=name,
                       highlight=selected).encode("utf-8", "replace")
            inner_px = (
                max(0, (cell_w - 2) * cw),
                max(0, ((cell_h - 2) * ch) // SIXEL_BAND_HEIGHT
                    * SIXEL_BAND_HEIGHT),
            )
            sixel = self._sixel_for(index, inner_px, enlarge=False)
            if sixel:
                out += move_to(top + 1, left + 1).encode("ascii") + sixel

        position = f"{state.selected_index + 1}/{len(state.items)}"
        status = (f"{_STATUS_HELP} | {position} | "
                  f"Page {state.page_number}/{state.page_count}")
        out += self._status(status, rows - BROWSER_STATUS_ROWS + 1,
                            cols).encode("utf-8", "replace")
        return bytes(out)

    def render_fullscreen(self) -> bytes:
        """Return the bytes for the selected image filling the screen."""
        cols, rows, _, _ = self._geometry
        cw, ch = self._cell_px()
        state = self.state
        box_px = (cols * cw,
                  ((rows - 1) * ch) // SIXEL_BAND_HEIGHT * SIXEL_BAND_HEIGHT)
        out = bytearray(CLEAR_SCREEN.encode("ascii"))
        sixel = self._sixel_for(state.selected_index, box_px, enlarge=True)
        if sixel:
            out += move_to(1, 1).encode("ascii") + sixel
        status = (f"{state.selected.path.name} | q/ESC: Back | "
                  f"{state.selected_index + 1}/{len(state.items)}")
        out += (move_to(rows, 1) + status[:cols]).encode("utf-8", "replace")
        return bytes(out)

    def draw(self) -> None:
        """Write the frame for the current mode."""
        frame = (self.render_fullscreen() if self.state.fullscreen
                 else self.render_grid())
        self.screen.write(frame)
        self.screen.flush()

    # Event loop

    def read_keys(self, timeout: float) -> bytes:
        """Return pending input, or empty bytes after ``timeout``."""
        ready, _, _ = select.select([self.input_fd], [], [], timeout)
        if not ready:
            return b""
        return os.read(self.input_fd, 1024)

    def run(self) -> None:
        """Process keys until the user quits."""
        resized = [False]
        timeout = self.settings.poll_interval_ms / 1000
        with watch_resize(resized):
            self.refresh_geometry()
            self.draw()
            while True:
                redraw = False
                for key in decode_keys(self.read_keys(timeout)):
                    outcome = self.state.handle(key)
                    if outcome is Outcome.QUIT:
                        return
                    redraw = redraw or outcome is Outcome.REDRAW
                if resized[0]:
                    resized[0] = False
                    self.refresh_geometry()
                    redraw = True
                if redraw:
                    self.draw()


def run_browser(
    entries: list[ImageEntry],
    *,
    decoder: DecoderPool,
    profile: TerminalProfile,
    settings: BrowserSettings,
    session: TerminalSession,
) -> None:
    """Take over the terminal and browse ``entries`` until the user quits."""
    session.drain_input()
    session.enter_raw_mode()
    session.enter_alternate_screen()
    session.hide_cursor()
    session.enter_context(suspend_console_logging())
    app = BrowserApp(
        BrowserState(items=list(entries)),
        decoder=decoder,
        profile=profile,
        settings=settings,
        screen=session.screen,
        input_fd=session.open_input(),
    )
    app.run()


__all__ = [
    "BrowserApp",
    "box",
    "cell_pixel_size",
    "move_to",
    "run_browser",
    "terminal_geometry",
    "watch_resize",
]
