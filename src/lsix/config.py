"""
Configuration schema and loader for lsix.

Defines Pydantic models representing structured configuration sections,
a TOML-based config loader with validation support, and the overlay of
environment variable overrides on top of a loaded file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import platformdirs
import tomlkit
from PIL import ImageColor
from pydantic import BaseModel, Field, ValidationError, field_validator
from tomlkit.exceptions import ParseError

from lsix.config_defaults import (
    CACHE_APP_NAME,
    DEFAULT_BROWSER_MAX_COLS,
    DEFAULT_BROWSER_MAX_ROWS,
    DEFAULT_CACHE_ENABLED,
    DEFAULT_COLOR_BUDGET,
    DEFAULT_FULLSCREEN_MAX_DIMENSION,
    DEFAULT_LABEL_MODE,
    DEFAULT_POLL_INTERVAL_MS,
    DEFAULT_SHADOW,
    DEFAULT_TILE_SIZE,
    MIN_COLOR_BUDGET,
)
from lsix.errors import ConfigError
from lsix.type_defs import LabelMode

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Mapping

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off", ""})
_LEGACY_ALIASES: dict[str, tuple[str, ...]] = {
    "FORCE_GRAPHICS": ("LSIX_FORCE_SIXEL_SUPPORT",),
    "FORCE_WIDTH": ("LSIX_WIDTH",),
    "FORCE_BACKGROUND": ("LSIX_BACKGROUND",),
    "FORCE_FOREGROUND": ("LSIX_FOREGROUND",),
}


class TerminalSettings(BaseModel):
    """Overrides for the terminal probe."""

    force_graphics: bool = False
    force_width: int | None = Field(None, ge=1)
    force_background: str | None = None
    force_foreground: str | None = None
    skip_queries: bool = False
    columns: int | None = Field(None, ge=1)

    @field_validator("force_background", "force_foreground")
    @classmethod
    def _check_color(cls, value: str | None) -> str | None:
        """Reject color names Pillow cannot interpret."""
        if value is not None:
            ImageColor.getrgb(value)
        return value


class LayoutSettings(BaseModel):
    """Control montage tile geometry and appearance."""

    tile_size: int = Field(DEFAULT_TILE_SIZE, ge=1)
    colors: int | None = Field(None, ge=MIN_COLOR_BUDGET)
    shadow: bool = DEFAULT_SHADOW
    label_mode: LabelMode = DEFAULT_LABEL_MODE


class CacheSettings(BaseModel):
    """Configure the on-disk row cache."""

    enabled: bool = DEFAULT_CACHE_ENABLED
    directory: str | None = None

    def resolve_directory(self) -> Path:
        """Return the configured cache directory or the per-user default."""
        if self.directory:
            return Path(self.directory).expanduser()
        return Path(platformdirs.user_cache_dir(CACHE_APP_NAME))


class BrowserSettings(BaseModel):
    """Control the interactive grid browser."""

    max_cols: int = Field(DEFAULT_BROWSER_MAX_COLS, ge=1, le=5)
    max_rows: int = Field(DEFAULT_BROWSER_MAX_ROWS, ge=1, le=3)
    fullscreen_max_dimension: int = Field(
        DEFAULT_FULLSCREEN_MAX_DIMENSION,
        ge=1,
    )
    poll_interval_ms: int = Field(DEFAULT_POLL_INTERVAL_MS, ge=1, le=1000)


class LsixConfig(BaseModel):
    """
    Root configuration object combining all supported sections.

    Mirrors the structure of config.toml, grouping related parameters
    under logical categories.
    """

    # model_validate({}) lets Pydantic populate defaults from Field(...)
    # declarations while keeping pyright satisfied.
    terminal: TerminalSettings = Field(
        default_factory=lambda: TerminalSettings.model_validate({}),
    )
    layout: LayoutSettings = Field(
        default_factory=lambda: LayoutSettings.model_validate({}),
    )
    cache: CacheSettings = Field(
        default_factory=lambda: CacheSettings.model_validate({}),
    )
    browser: BrowserSettings = Field(
        default_factory=lambda: BrowserSettings.model_validate({}),
    )


class ConfigLoader:
    """
    Loads and parses a TOML configuration file into a typed config object.

    Falls back to defaults for any missing subsections or fields.
    """

    @staticmethod
    def load(path: str | Path) -> LsixConfig:
        """
        Load an lsix configuration from a TOML file.

        Returns a validated LsixConfig instance based on the file
        contents.
        """
        config_path = Path(path)
        if not config_path.is_file():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)

        with config_path.open("r", encoding="utf-8") as f:
            doc = tomlkit.load(f)

        return LsixConfig.model_validate(doc.unwrap())


def default_config_path() -> Path:
    """Return the per-user config file location."""
    return Path(platformdirs.user_config_dir(CACHE_APP_NAME)) / "config.toml"


def _env_value(environ: Mapping[str, str], name: str) -> str | None:
    """Look up NAME, then LSIX_NAME, then any legacy alias."""
    for key in (name, f"LSIX_{name}", *_LEGACY_ALIASES.get(name, ())):
        value = environ.get(key)
        if value is not None:
            return value
    return None


def parse_bool(text: str, name: str) -> bool:
    """Interpret an environment flag."""
    lowered = text.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    msg = f"{name} must be a boolean flag, got {text!r}"
    raise ConfigError(msg)


def parse_positive_int(text: str, name: str) -> int:
    """Interpret an environment integer that must be at least one."""
    try:
        value = int(text.strip())
    except ValueError as exc:
        msg = f"{name} must be an integer, got {text!r}"
        raise ConfigError(msg) from exc
    if value < 1:
        msg = f"{name} must be positive, got {value}"
        raise ConfigError(msg)
    return value


def apply_environment(
    config: LsixConfig,
    environ: Mapping[str, str] | None = None,
) -> LsixConfig:
    """
    Overlay environment overrides onto a loaded configuration.

    Environment values win over the file. Each variable is also read
    with an ``LSIX_`` prefix when the bare name is unset.

    Raises:
        ConfigError: If a value cannot be parsed or fails validation.

    """
    env = os.environ if environ is None else environ
    data = config.model_dump()
    term = data["terminal"]
    layout = data["layout"]

    if (raw := _env_value(env, "FORCE_GRAPHICS")) is not None:
        term["force_graphics"] = parse_bool(raw, "FORCE_GRAPHICS")
    if (raw := _env_value(env, "SKIP_QUERIES")) is not None:
        term["skip_queries"] = parse_bool(raw, "SKIP_QUERIES")
    if (raw := _env_value(env, "FORCE_WIDTH")) is not None:
        term["force_width"] = parse_positive_int(raw, "FORCE_WIDTH")
    if (raw := _env_value(env, "FORCE_BACKGROUND")) is not None:
        term["force_background"] = raw.strip() or None
    if (raw := _env_value(env, "FORCE_FOREGROUND")) is not None:
        term["force_foreground"] = raw.strip() or None
    if (raw := env.get("COLUMNS")) is not None and raw.strip():
        term["columns"] = parse_positive_int(raw, "COLUMNS")
    if (raw := _env_value(env, "TILESIZE")) is not None:
        layout["tile_size"] = parse_positive_int(raw, "TILESIZE")
    if (raw := _env_value(env, "COLORS")) is not None:
        layout["colors"] = parse_positive_int(raw, "COLORS")
    if (raw := _env_value(env, "SHADOW")) is not None:
        layout["shadow"] = parse_bool(raw, "SHADOW")

    try:
        return LsixConfig.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid environment override: {exc}"
        raise ConfigError(msg) from exc


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> LsixConfig:
    """
    Build the effective configuration.

    An explicit path must exist. Without one, the per-user config file
    is used when present and defaults apply otherwise.

    Raises:
        ConfigError: If the file is missing, unparsable, or invalid.

    """
    try:
        if path is not None:
            base = ConfigLoader.load(path)
        elif default_config_path().is_file():
            base = ConfigLoader.load(default_config_path())
        else:
            base = LsixConfig.model_validate({})
    except (FileNotFoundError, ValidationError, ParseError) as exc:
        raise ConfigError(str(exc)) from exc
    return apply_environment(base, environ)


__all__ = [
    "BrowserSettings",
    "CacheSettings",
    "ConfigLoader",
    "LayoutSettings",
    "LsixConfig",
    "TerminalSettings",
    "apply_environment",
    "default_config_path",
    "load_config",
    "parse_bool",
    "parse_positive_int",
]
