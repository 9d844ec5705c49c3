"""Tests for rendering rows through the cache."""
from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import pytest
from pytest_mock import MockerFixture

import lsix.renderer as lsix_renderer
from lsix.decoder import DecoderPool
from lsix.errors import EncodeFailed
from lsix.layout import LayoutParameters
from lsix.row_cache import RowCache, row_fingerprint
from lsix.sixel import SIXEL_INTRODUCER, SIXEL_TERMINATOR
from lsix.type_defs import ImageEntry

pytestmark = pytest.mark.visual


class TestRenderRow:
    def test_renders_sixel(
        self,
        make_entries: Callable[[int], list[ImageEntry]],
        small_layout: LayoutParameters,
    ) -> None:
        """A row of decodable images becomes one sixel stream."""
        data = lsix_renderer.render_row(
            make_entries(3), small_layout, decoder=DecoderPool(workers=1),
        )
        assert data.startswith(SIXEL_INTRODUCER)
        assert data.endswith(SIXEL_TERMINATOR)
        width = 3 * small_layout.cell_w
        assert f'"1;1;{width};'.encode() in data

    def test_idempotent(
        self,
        make_entries: Callable[[int], list[ImageEntry]],
        small_layout: LayoutParameters,
    ) -> None:
        """Rendering twice without changes gives identical bytes."""
        entries = make_entries(2)
        decoder = DecoderPool(workers=1)
        first = lsix_renderer.render_row(entries, small_layout,
                                         decoder=decoder)
        second = lsix_renderer.render_row(entries, small_layout,
                                          decoder=decoder)
        assert first == second

    def test_cache_written_then_used(
        self,
        tmp_path: Path,
        make_entries: Callable[[int], list[ImageEntry]],
        small_layout: LayoutParameters,
        mocker: MockerFixture,
    ) -> None:
        """A second render is served from the cache without composing."""
        entries = make_entries(2)
        cache = RowCache(tmp_path / "cache")
        decoder = DecoderPool(workers=1)
        first = lsix_renderer.render_row(entries, small_layout,
                                         decoder=decoder, cache=cache)
        fingerprint = row_fingerprint(entries, small_layout)
        assert cache.path_for(fingerprint).read_bytes() == first

        compose = mocker.spy(lsix_renderer, "compose_row")
        second = lsix_renderer.render_row(entries, small_layout,
                                          decoder=decoder, cache=cache)
        assert second == first
        compose.assert_not_called()

    def test_failed_entries_left_out(
        self,
        tmp_path: Path,
        make_entries: Callable[[int], list[ImageEntry]],
        small_layout: LayoutParameters,
    ) -> None:
        """An undecodable entry is skipped; the row is not cached."""
        entries = make_entries(1)
        broken = tmp_path / "broken.png"
        broken.write_bytes(b"garbage")
        row = [*entries, ImageEntry(path=broken, label="broken.png")]
        cache = RowCache(tmp_path / "cache")
        data = lsix_renderer.render_row(row, small_layout,
                                        decoder=DecoderPool(workers=1),
                                        cache=cache)
        assert f'"1;1;{small_layout.cell_w};'.encode() in data
        assert not cache.path_for(row_fingerprint(row, small_layout)).exists()

    def test_all_failed_gives_empty_bytes(
        self,
        tmp_path: Path,
        small_layout: LayoutParameters,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A row with nothing decodable is skipped with a warning."""
        broken = tmp_path / "broken.png"
        broken.write_bytes(b"garbage")
        with caplog.at_level(logging.WARNING):
            data = lsix_renderer.render_row(
                [ImageEntry(path=broken, label="x")], small_layout,
                decoder=DecoderPool(workers=1),
            )
        assert data == b""
        assert "Skipping row" in caplog.text

    def test_encode_failure_gives_empty_bytes(
        self,
        make_entries: Callable[[int], list[ImageEntry]],
        small_layout: LayoutParameters,
        mocker: MockerFixture,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Encoder errors skip the row rather than abort."""
        mocker.patch.object(lsix_renderer, "encode_sixel",
                            side_effect=EncodeFailed("boom"))
        with caplog.at_level(logging.WARNING):
            data = lsix_renderer.render_row(
                make_entries(1), small_layout, decoder=DecoderPool(workers=1),
            )
        assert data == b""
        assert "boom" in caplog.text

    def test_bitmaps_released_after_row(
        self,
        make_entries: Callable[[int], list[ImageEntry]],
        small_layout: LayoutParameters,
    ) -> None:
        """Decoded bitmaps do not outlive their row."""
        decoder = DecoderPool(workers=1)
        lsix_renderer.render_row(make_entries(2), small_layout,
                                 decoder=decoder)
        assert len(decoder) == 0
