"""
Probe the controlling terminal for sixel support, width and colors.

Every query has a hard deadline and every failure other than missing
graphics support falls back to a default. The profile is built once at
startup and never mutated.
"""

from __future__ import annotations

import os
import re
import select
import termios
import time
import tty
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from lsix.config_defaults import (
    DEFAULT_BACKGROUND,
    DEFAULT_COLOR_BUDGET,
    DEFAULT_FOREGROUND,
    DEFAULT_PIXEL_WIDTH,
)
from lsix.constants import (
    CAPABILITY_TIMEOUT,
    COLOR_TIMEOUT,
    KNOWN_GRAPHICS_TERM_PREFIX,
    KNOWN_GRAPHICS_TERMS,
    OSC_BACKGROUND_QUERY,
    OSC_FOREGROUND_QUERY,
    PIXELS_PER_COLUMN,
    PRIMARY_DEVICE_ATTRIBUTES,
    SIXEL_ATTRIBUTE,
    WINDOW_PIXEL_SIZE,
    XTSMGRAPHICS_GEOMETRY,
)
from lsix.errors import EnvironmentUnsupported
from lsix.logging_utils import logger

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable, Mapping

    from lsix.config import TerminalSettings

_DA_REPLY = re.compile(r"\x1b\[\?([\d;]*)c")
_GEOMETRY_REPLY = re.compile(r"\x1b\[\?2;0;(\d+);(\d+)S")
_WINDOW_REPLY = re.compile(r"\x1b\[4;(\d+);(\d+)t")
_COLOR_REPLY = re.compile(
    r"\x1b\](1[01]);rgb:([0-9a-fA-F]{1,4})/([0-9a-fA-F]{1,4})"
    r"/([0-9a-fA-F]{1,4})",
)
_UNSUPPORTED_HINT = (
    "Your terminal does not report having sixel graphics support. "
    "Use a sixel capable terminal such as xterm -ti vt340, "
    "or set FORCE_GRAPHICS=1 to force it."
)


@dataclass(frozen=True)
class TerminalProfile:
    """Capabilities and geometry of the terminal, read once at startup."""

    graphics_supported: bool
    pixel_width: int
    color_budget: int = DEFAULT_COLOR_BUDGET
    background_color: str = DEFAULT_BACKGROUND
    foreground_color: str = DEFAULT_FOREGROUND
    pixel_width_measured: bool = True


class QueryChannel(Protocol):
    """Anything that can send a query and collect the reply."""

    def query(
        self,
        request: str,
        timeout: float,
        done: Callable[[str], bool],
    ) -> str: ...

    def columns(self) -> int | None: ...


class TtyChannel:
    """Query channel backed by a terminal file descriptor."""

    def __init__(self, fd: int) -> None:
        self.fd = fd

    def query(
        self,
        request: str,
        timeout: float,
        done: Callable[[str], bool],
    ) -> str:
        """
        Write ``request`` and read the reply until ``done`` or timeout.

        The terminal is switched to non-canonical no-echo mode for the
        duration and restored afterwards.
        """
        saved = termios.tcgetattr(self.fd)
        buffer = bytearray()
        try:
            tty.setcbreak(self.fd, termios.TCSANOW)
            os.write(self.fd, request.encode("ascii"))
            deadline = time.monotonic() + timeout
            while (remaining := deadline - time.monotonic()) > 0:
                ready, _, _ = select.select([self.fd], [], [], remaining)
                if not ready:
                    break
                chunk = os.read(self.fd, 1024)
                if not chunk:
                    break
                buffer += chunk
                if done(buffer.decode("latin-1")):
                    break
        finally:
            termios.tcsetattr(self.fd, termios.TCSADRAIN, saved)
        return buffer.decode("latin-1")

    def columns(self) -> int | None:
        """Return the terminal width in character cells, if known."""
        try:
            return os.get_terminal_size(self.fd).columns or None
        except OSError:
            return None

    def close(self) -> None:
        """Close the underlying descriptor."""
        os.close(self.fd)


def open_tty_channel() -> TtyChannel | None:
    """Open the controlling terminal for queries, or return None."""
    try:
        fd = os.open("/dev/tty", os.O_RDWR | os.O_NOCTTY)
    except OSError as exc:
        logger.debug("No controlling terminal: %s", exc)
        return None
    if not os.isatty(fd):
        os.close(fd)
        return None
    return TtyChannel(fd)


def is_known_graphics_term(term: str) -> bool:
    """Return True when ``term`` names a terminal known to show sixel."""
    lowered = term.lower()
    if lowered.startswith(KNOWN_GRAPHICS_TERM_PREFIX):
        return True
    return any(name in lowered for name in KNOWN_GRAPHICS_TERMS)


def parse_device_attributes(reply: str) -> set[str]:
    """Return the attribute codes from a Primary Device Attributes reply."""
    match = _DA_REPLY.search(reply)
    if match is None:
        return set()
    return {code for code in match.group(1).split(";") if code}


def parse_geometry_reply(reply: str) -> int | None:
    """Return the pixel width from an XTSMGRAPHICS geometry reply."""
    match = _GEOMETRY_REPLY.search(reply)
    if match is None:
        return None
    width = int(match.group(1))
    return width or None


def parse_window_reply(reply: str) -> int | None:
    """Return the pixel width from a window size report."""
    match = _WINDOW_REPLY.search(reply)
    if match is None:
        return None
    width = int(match.group(2))
    return width or None


def _scale_component(text: str) -> int:
    """Scale a 1-4 digit hex color component to 0-255."""
    return round(int(text, 16) * 255 / (16 ** len(text) - 1))


def parse_color_replies(reply: str) -> dict[str, str]:
    """
    Parse OSC 10/11 replies into ``#rrggbb`` strings.

    Returns a mapping with keys ``"foreground"`` and ``"background"``
    for whichever replies were present.
    """
    colors: dict[str, str] = {}
    for match in _COLOR_REPLY.finditer(reply):
        name = "foreground" if match.group(1) == "10" else "background"
        r, g, b = (_scale_component(match.group(i)) for i in (2, 3, 4))
        colors[name] = f"#{r:02x}{g:02x}{b:02x}"
    return colors


def _ends_with_terminator(reply: str) -> bool:
    return reply.endswith(("c", "S", "\\", "t", "\x07"))


def detect_graphics(
    term: str,
    channel: QueryChannel | None,
) -> bool:
    """Decide whether sixel output is supported."""
    if is_known_graphics_term(term):
        return True
    if channel is None:
        return False
    try:
        reply = channel.query(
            PRIMARY_DEVICE_ATTRIBUTES,
            CAPABILITY_TIMEOUT,
            lambda text: text.endswith("c"),
        )
    except (OSError, termios.error) as exc:
        logger.debug("Device attributes query failed: %s", exc)
        return False
    logger.debug("Device attributes reply: %r", reply)
    return SIXEL_ATTRIBUTE in parse_device_attributes(reply)


def measure_pixel_width(
    settings: TerminalSettings,
    channel: QueryChannel | None,
) -> int | None:
    """Return the terminal width in pixels from the first source that works."""
    if settings.force_width is not None:
        return settings.force_width
    if channel is not None:
        width = parse_geometry_reply(channel.query(
            XTSMGRAPHICS_GEOMETRY, CAPABILITY_TIMEOUT, _ends_with_terminator,
        ))
        if width is None:
            width = parse_window_reply(channel.query(
                WINDOW_PIXEL_SIZE, CAPABILITY_TIMEOUT, _ends_with_terminator,
            ))
        if width is not None:
            return width
    columns = settings.columns
    if columns is None and channel is not None:
        columns = channel.columns()
    if columns:
        return columns * PIXELS_PER_COLUMN
    return None


def detect_pixel_width(
    settings: TerminalSettings,
    channel: QueryChannel | None,
) -> int:
    """Return the measured pixel width, or the default when nothing answers."""
    return measure_pixel_width(settings, channel) or DEFAULT_PIXEL_WIDTH


def detect_colors(
    settings: TerminalSettings,
    channel: QueryChannel | None,
) -> tuple[str, str]:
    """Return ``(background, foreground)`` colors."""
    background = settings.force_background
    foreground = settings.force_foreground
    if channel is not None and (background is None or foreground is None):

        def both_seen(text: str) -> bool:
            return len(parse_color_replies(text)) == 2  # noqa: PLR2004

        reply = channel.query(
            OSC_FOREGROUND_QUERY + OSC_BACKGROUND_QUERY,
            COLOR_TIMEOUT,
            both_seen,
        )
        parsed = parse_color_replies(reply)
        background = background or parsed.get("background")
        foreground = foreground or parsed.get("foreground")
    return (background or DEFAULT_BACKGROUND,
            foreground or DEFAULT_FOREGROUND)


def probe_terminal(
    settings: TerminalSettings,
    *,
    color_budget: int | None = None,
    environ: Mapping[str, str] | None = None,
    channel_factory: Callable[[], QueryChannel | None] = open_tty_channel,
) -> TerminalProfile:
    """
    Build the terminal profile.

    Overrides in ``settings`` apply first. Known terminal types skip
    the capability query. No query is sent when ``skip_queries`` is
    set.

    Raises:
        EnvironmentUnsupported: If graphics cannot be shown.

    """
    env = os.environ if environ is None else environ
    term = env.get("TERM", "")
    channel = None if settings.skip_queries else channel_factory()
    try:
        supported = settings.force_graphics or detect_graphics(term, channel)
        if not supported:
            raise EnvironmentUnsupported(_UNSUPPORTED_HINT)
        try:
            measured = measure_pixel_width(settings, channel)
            background, foreground = detect_colors(settings, channel)
        except (OSError, termios.error) as exc:
            logger.debug("Terminal query failed, using defaults: %s", exc)
            measured = settings.force_width
            background = settings.force_background or DEFAULT_BACKGROUND
            foreground = settings.force_foreground or DEFAULT_FOREGROUND
    finally:
        close = getattr(channel, "close", None)
        if close is not None:
            close()

    profile = TerminalProfile(
        graphics_supported=True,
        pixel_width=measured or DEFAULT_PIXEL_WIDTH,
        pixel_width_measured=measured is not None,
        color_budget=color_budget or DEFAULT_COLOR_BUDGET,
        background_color=background,
        foreground_color=foreground,
    )
    logger.debug("Terminal profile: %s", profile)
    return profile


__all__ = [
    "QueryChannel",
    "TerminalProfile",
    "TtyChannel",
    "detect_colors",
    "detect_graphics",
    "detect_pixel_width",
    "is_known_graphics_term",
    "measure_pixel_width",
    "open_tty_channel",
    "parse_color_replies",
    "parse_device_attributes",
    "parse_geometry_reply",
    "parse_window_reply",
    "probe_terminal",
]
