"""Decode raw terminal input bytes into navigation keys."""

from __future__ import annotations

from enum import Enum


class Key(Enum):
    """Keys understood by the grid browser."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    HOME = "home"
    END = "end"
    ENTER = "enter"
    ESCAPE = "escape"
    QUIT = "quit"
    OTHER = "other"


_SEQUENCES: dict[bytes, Key] = {
    b"\x1b[A": Key.UP,
    b"\x1b[B": Key.DOWN,
    b"\x1b[C": Key.RIGHT,
    b"\x1b[D": Key.LEFT,
    b"\x1bOA": Key.UP,
    b"\x1bOB": Key.DOWN,
    b"\x1bOC": Key.RIGHT,
    b"\x1bOD": Key.LEFT,
    b"\x1b[5~": Key.PAGE_UP,
    b"\x1b[6~": Key.PAGE_DOWN,
    b"\x1b[H": Key.HOME,
    b"\x1bOH": Key.HOME,
    b"\x1b[1~": Key.HOME,
    b"\x1b[7~": Key.HOME,
    b"\x1b[F": Key.END,
    b"\x1bOF": Key.END,
    b"\x1b[4~": Key.END,
    b"\x1b[8~": Key.END,
}
_SINGLE: dict[int, Key] = {
    0x0D: Key.ENTER,
    0x0A: Key.ENTER,
    0x1B: Key.ESCAPE,
    ord("q"): Key.QUIT,
    0x07: Key.HOME,  # Ctrl-G
    ord("G"): Key.END,
}
_CSI_FINAL = range(0x40, 0x7F)


def _sequence_length(data: bytes, start: int) -> int:
    """Return the length of the escape sequence beginning at ``start``."""
    if start + 1 >= len(data):
        return 1
    kind = data[start + 1]
    if kind == ord("O"):
        return min(3, len(data) - start)
    if kind != ord("["):
        return 1
    end = start + 2
    while end < len(data):
        if data[end] in _CSI_FINAL:
            return end - start + 1
        end += 1
    return len(data) - start


def decode_keys(data: bytes) -> list[Key]:
    """
    Split a chunk of input into keys, in the order they were typed.

    A lone ESC byte, or one followed by something that is not a CSI or
    SS3 sequence, is reported as ``Key.ESCAPE``. Unknown sequences
    become ``Key.OTHER``.
    """
    keys: list[Key] = []
    index = 0
    while index < len(data):
        if data[index] == 0x1B:
            length = _sequence_length(data, index)
            if length == 1:
                keys.append(Key.ESCAPE)
            else:
                sequence = data[index: index + length]
                keys.append(_SEQUENCES.get(sequence, Key.OTHER))
            index += length
            continue
        keys.append(_SINGLE.get(data[index], Key.OTHER))
        index += 1
    return keys


__all__ = ["Key", "decode_keys"]
