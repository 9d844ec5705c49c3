"""Display labels for image tiles derived from file paths."""

from __future__ import annotations

from pathlib import Path

from lsix.constants import LABEL_SPAN
from lsix.type_defs import LabelMode

_URL_PREFIX = "file://"
_FRAME_SUFFIX = "[0]"
_DEL = 0x7F
_FIRST_PRINTABLE = 0x20


def _printable(ch: str) -> str:
    code = ord(ch)
    return "?" if code < _FIRST_PRINTABLE or code == _DEL else ch


def clean_label(text: str) -> str:
    """
    Strip decoder hints and make a label printable.

    Removes a leading ``:`` or ``file://`` and a trailing ``[0]`` frame
    selector, then replaces ASCII control characters with ``?``.
    """
    text = text.removeprefix(":").removeprefix(_URL_PREFIX)
    text = text.removesuffix(_FRAME_SUFFIX)
    return "".join(_printable(ch) for ch in text)


def halve_label(text: str, span: int = LABEL_SPAN) -> str:
    """Split ``text`` into newline separated halves until each fits span."""
    if len(text) <= span:
        return text
    middle = len(text) // 2
    return (halve_label(text[:middle], span) + "\n"
            + halve_label(text[middle:], span))


def make_label(path: Path | str, mode: LabelMode = "short") -> str:
    """Return the label shown under a tile for ``path``."""
    raw = str(path) if mode == "long" else Path(path).name
    return halve_label(clean_label(raw))
