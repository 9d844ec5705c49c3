"""Terminal capability probing, key decoding, and state restoration."""

from .lifecycle import TerminalSession
from .probe import TerminalProfile, probe_terminal

__all__ = ["TerminalProfile", "TerminalSession", "probe_terminal"]
