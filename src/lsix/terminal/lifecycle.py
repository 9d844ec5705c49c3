"""
Scoped terminal state changes that are always undone.

Each change pushes its own undo onto an ``ExitStack`` so restoration runs
in reverse order on every exit path: normal return, exceptions,
``KeyboardInterrupt``, and SIGTERM or SIGHUP converted to ``SystemExit``.
"""

from __future__ import annotations

import contextlib
import os
import signal
import sys
import termios
import tty
from typing import TYPE_CHECKING, BinaryIO, Self, TypeVar

from lsix.constants import (
    ENTER_ALT_SCREEN,
    HIDE_CURSOR,
    LEAVE_ALT_SCREEN,
    SHOW_CURSOR,
    STRING_TERMINATOR,
)
from lsix.logging_utils import logger

if TYPE_CHECKING:  # pragma: no cover
    from types import FrameType, TracebackType

T = TypeVar("T")

_HANDLED_SIGNALS = (signal.SIGTERM, signal.SIGHUP)
_SIGNAL_EXIT_BASE = 128


def _raise_exit(signum: int, _frame: FrameType | None) -> None:
    raise SystemExit(_SIGNAL_EXIT_BASE + signum)


class TerminalSession:
    """
    Context manager owning every terminal mode change made by lsix.

    Entering installs termination signal handlers and arranges for the
    graphics-stop sequence to be written on exit. The ``enter_*`` helpers
    and ``hide_cursor`` apply further changes whose undo is registered at
    the same time.
    """

    def __init__(
        self,
        *,
        screen: BinaryIO | None = None,
        control: BinaryIO | None = None,
        install_signals: bool = True,
    ) -> None:
        self.screen = screen if screen is not None else sys.stdout.buffer
        self.control = control if control is not None else sys.stderr.buffer
        self.install_signals = install_signals
        self.input_fd: int | None = None
        self._stack = contextlib.ExitStack()

    def __enter__(self) -> Self:
        self._stack.__enter__()
        self._stack.callback(self._emit_terminator)
        if self.install_signals:
            self._install_signal_handlers()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        return self._stack.__exit__(exc_type, exc, tb)

    def _write(self, stream: BinaryIO, text: str) -> None:
        try:
            stream.write(text.encode("ascii"))
            stream.flush()
        except (BrokenPipeError, ValueError, OSError) as exc:
            logger.debug("Terminal write failed: %s", exc)

    def _emit_terminator(self) -> None:
        self._write(self.control, STRING_TERMINATOR)

    def _install_signal_handlers(self) -> None:
        for signum in _HANDLED_SIGNALS:
            try:
                previous = signal.signal(signum, _raise_exit)
            except ValueError:
                # Not the main thread.
                return
            self._stack.callback(signal.signal, signum, previous)

    def open_input(self) -> int:
        """Return a descriptor for keyboard input, opening /dev/tty if needed."""
        if self.input_fd is not None:
            return self.input_fd
        if sys.stdin.isatty():
            self.input_fd = sys.stdin.fileno()
        else:
            self.input_fd = os.open("/dev/tty", os.O_RDONLY | os.O_NOCTTY)
            self._stack.callback(os.close, self.input_fd)
        return self.input_fd

    def enter_raw_mode(self) -> None:
        """Switch input to non-canonical, no-echo mode until exit."""
        fd = self.open_input()
        saved = termios.tcgetattr(fd)
        self._stack.callback(termios.tcsetattr, fd, termios.TCSADRAIN, saved)
        tty.setcbreak(fd, termios.TCSANOW)

    def drain_input(self) -> None:
        """Discard keystrokes typed before the interactive loop starts."""
        termios.tcflush(self.open_input(), termios.TCIFLUSH)

    def enter_alternate_screen(self) -> None:
        """Switch to the alternate screen buffer until exit."""
        self._write(self.screen, ENTER_ALT_SCREEN)
        self._stack.callback(self._write, self.screen, LEAVE_ALT_SCREEN)

    def hide_cursor(self) -> None:
        """Hide the cursor until exit."""
        self._write(self.screen, HIDE_CURSOR)
        self._stack.callback(self._write, self.screen, SHOW_CURSOR)

    def enter_context(self, cm: contextlib.AbstractContextManager[T]) -> T:
        """Tie another context manager to the session's lifetime."""
        return self._stack.enter_context(cm)


__all__ = ["TerminalSession"]
