"""
Stream rendered rows to a byte sink in input order.

Rows are rendered concurrently on a thread pool. Futures are consumed in
submission order, so a finished later row waits until every earlier row
has been written. Each row is flushed as soon as it is written.
"""

from __future__ import annotations

import sys
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, BinaryIO, TypeVar

from tqdm import tqdm

from lsix.errors import OutputClosed
from lsix.logging_utils import logger

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable, Sequence
    from concurrent.futures import Future

    from lsix.type_defs import ImageEntry

T = TypeVar("T")


def chunk_entries(items: Sequence[T], size: int) -> list[list[T]]:
    """Split ``items`` into consecutive chunks of at most ``size``."""
    if size < 1:
        msg = "chunk size must be positive"
        raise ValueError(msg)
    return [list(items[i: i + size]) for i in range(0, len(items), size)]


def _progress_disabled(sink: BinaryIO) -> bool:
    """Hide the bar unless stderr is a terminal that is not showing rows."""
    try:
        sink_is_tty = sink.isatty()
    except (AttributeError, ValueError):
        sink_is_tty = False
    return not sys.stderr.isatty() or sink_is_tty


def _cancel_pending(futures: Sequence[Future[bytes]]) -> None:
    for future in futures:
        future.cancel()


def stream_rows(  # noqa: PLR0913
    entries: Sequence[ImageEntry],
    tiles_per_row: int,
    *,
    render: Callable[[Sequence[ImageEntry]], bytes],
    sink: BinaryIO,
    workers: int | None = None,
    show_progress: bool | None = None,
) -> int:
    """
    Render rows in parallel and write them to ``sink`` strictly in order.

    Args:
        entries: Validated images in display order.
        tiles_per_row: Chunk size for each row.
        render: Turns one chunk into bytes; empty bytes skip the row.
        sink: Binary stream receiving the graphics bytes.
        workers: Thread count; defaults to the executor's own choice.
        show_progress: Force the stderr progress bar on or off. By default
            it shows only when stderr is a terminal and ``sink`` is not.

    Returns:
        Number of rows written.

    Raises:
        OutputClosed: If the reader closed ``sink``.

    """
    chunks = chunk_entries(entries, tiles_per_row)
    disable = _progress_disabled(sink) if show_progress is None else (
        not show_progress)
    written = 0
    executor = ThreadPoolExecutor(max_workers=workers,
                                  thread_name_prefix="lsix-row")
    futures = [executor.submit(render, chunk) for chunk in chunks]
    try:
        with tqdm(
            total=len(chunks),
            unit="row",
            file=sys.stderr,
            disable=disable,
            leave=False,
        ) as bar:
            for index, future in enumerate(futures):
                data = future.result()
                bar.update(1)
                if not data:
                    logger.debug("Row %d produced no output", index)
                    continue
                sink.write(data)
                sink.flush()
                written += 1
    except BrokenPipeError as exc:
        _cancel_pending(futures)
        msg = "Output stream closed by reader"
        raise OutputClosed(msg) from exc
    except BaseException:
        _cancel_pending(futures)
        raise
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
    return written


__all__ = ["chunk_entries", "stream_rows"]
