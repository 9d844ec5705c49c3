"""
Centralized logging utilities for lsix.

Defines a shared logger instance and setup function so every module
reports through the same stderr handler. Stdout carries only graphics
bytes, so nothing here ever writes to it.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterator


def setup_logger(
        name: str = __name__,
        level: int = logging.INFO,
        formatter: logging.Formatter | None = None,
        handler: logging.Handler | None = None,
) -> logging.Logger:
    """
    Configure a logger with optional custom formatting and handler.

    Creates a module-level logger with sensible defaults for level and
    formatting. Custom handlers and formatters can be supplied if
    needed.

    Args:
        name: Logger name, typically set to __name__.
        level: Logging level (e.g., logging.INFO, logging.DEBUG).
        formatter: Optional custom formatter.
        handler: Optional custom handler.

    Returns:
        A configured logger instance.

    """
    logger_instance = logging.getLogger(name)
    logger_instance.setLevel(level)
    if not logger_instance.handlers:
        if formatter is None:
            formatter = logging.Formatter("lsix: [%(levelname)s] %(message)s")
        if handler is None:
            handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        logger_instance.addHandler(handler)
        logger_instance.propagate = False
    return logger_instance


def set_verbosity(*, verbose: bool = False, quiet: bool = False) -> None:
    """Adjust the shared logger level from CLI flags."""
    if verbose:
        logger.setLevel(logging.DEBUG)
    elif quiet:
        logger.setLevel(logging.ERROR)
    else:
        logger.setLevel(logging.INFO)


@contextmanager
def suspend_console_logging(
    target: logging.Logger | None = None,
) -> Iterator[None]:
    """
    Silence stream handlers while a full-screen UI owns the terminal.

    Records emitted in the meantime are dropped, and every handler gets
    its previous level back on exit.
    """
    log = target or logger
    saved: list[tuple[logging.Handler, int]] = []
    for handler in log.handlers:
        if isinstance(handler, logging.StreamHandler):
            saved.append((handler, handler.level))
            handler.setLevel(logging.CRITICAL + 1)
    try:
        yield
    finally:
        for handler, level in saved:
            handler.setLevel(level)


# Shared logger used across modules
logger = setup_logger("lsix")
