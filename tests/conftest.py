"""
Test configuration and shared fixtures for lsix.

This module defines reusable pytest fixtures for writing sample images
to disk, building terminal profiles and layouts, and isolating the
environment. These fixtures support all test modules in the test suite.

Note:
    This file is automatically loaded by pytest and should not be
    renamed.

"""
from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from PIL import Image

from lsix.config import LayoutSettings, LsixConfig
from lsix.constants import COLOR_MODE_RGB
from lsix.layout import LayoutParameters, derive_layout
from lsix.logging_utils import logger
from lsix.terminal.probe import TerminalProfile
from lsix.type_defs import ImageEntry

_ENV_OVERRIDES = (
    "FORCE_GRAPHICS", "FORCE_WIDTH", "FORCE_BACKGROUND", "FORCE_FOREGROUND",
    "SKIP_QUERIES", "TILESIZE", "COLORS", "SHADOW", "COLUMNS",
    "LSIX_FORCE_GRAPHICS", "LSIX_FORCE_SIXEL_SUPPORT", "LSIX_WIDTH",
    "LSIX_BACKGROUND", "LSIX_FOREGROUND", "LSIX_SKIP_QUERIES",
    "LSIX_TILESIZE", "LSIX_COLORS", "LSIX_SHADOW",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove lsix environment overrides inherited from the shell."""
    for name in _ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def enable_logger_propagation(monkeypatch: pytest.MonkeyPatch) -> None:
    """Enable propagation for the lsix logger to allow caplog to work."""
    monkeypatch.setattr(logger, "propagate", True)


@pytest.fixture
def sample_image() -> Image.Image:
    """Create a sample 100x100 red RGB PIL image."""
    return Image.new(COLOR_MODE_RGB, (100, 100), color="red")


@pytest.fixture
def make_image_file(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a solid-color image under tmp_path."""

    def _make(
        name: str,
        size: tuple[int, int] = (64, 48),
        color: str = "blue",
        mode: str = COLOR_MODE_RGB,
    ) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new(mode, size, color=color).save(path)
        return path

    return _make


@pytest.fixture
def image_dir(make_image_file: Callable[..., Path], tmp_path: Path) -> Path:
    """A directory with three images and one non-image file."""
    make_image_file("b.png", color="green")
    make_image_file("a.jpg", color="red")
    make_image_file("c.gif", color="white")
    (tmp_path / "notes.txt").write_text("not an image", encoding="utf-8")
    return tmp_path


@pytest.fixture
def make_entries(
    make_image_file: Callable[..., Path],
) -> Callable[[int], list[ImageEntry]]:
    """Factory for validated entries backed by real image files."""
    colors = ("red", "green", "blue", "yellow", "purple", "orange", "white")

    def _make(count: int) -> list[ImageEntry]:
        entries = []
        for i in range(count):
            path = make_image_file(f"img{i:03d}.png",
                                   color=colors[i % len(colors)])
            entries.append(ImageEntry(path=path, label=path.name))
        return entries

    return _make


@pytest.fixture
def profile() -> TerminalProfile:
    """A graphics-capable 1920 px wide dark terminal."""
    return TerminalProfile(
        graphics_supported=True,
        pixel_width=1920,
        color_budget=256,
        background_color="#282a36",
        foreground_color="white",
    )


@pytest.fixture
def small_layout() -> LayoutParameters:
    """A compact layout that keeps image tests fast."""
    return LayoutParameters(
        tile_w=40,
        tile_h=40,
        margin_x=2,
        margin_y=1,
        tiles_per_row=3,
        font_size=10,
        color_budget=16,
        bg="#282a36",
        fg="white",
    )


@pytest.fixture
def default_layout(profile: TerminalProfile) -> LayoutParameters:
    """Layout derived from the default profile and settings."""
    return derive_layout(profile, LayoutSettings.model_validate({}))


@pytest.fixture
def isolated_config(tmp_path: Path) -> LsixConfig:
    """Defaults with the row cache pointed at a temporary directory."""
    return LsixConfig.model_validate(
        {"cache": {"directory": str(tmp_path / "cache")}},
    )
