# tests/test_cli.py
"""
Tests for the CLI parser and execution logic.

These tests verify correct CLI parsing, config and environment
overrides, routing to the listing or browsing pipeline, and the exit
code returned for each class of failure.

Modules tested:
- build_arg_parser()
- build_config()
- run_from_args()
- main()
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from pytest_mock import MockerFixture

import lsix.cli as lsix_cli
import lsix.config as lsix_config
import lsix.main as lsix_main
from lsix.constants import (
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_OK,
    EXIT_USAGE,
)
from lsix.errors import EnvironmentUnsupported, OutputClosed
from lsix.logging_utils import logger


@pytest.fixture(autouse=True)
def no_user_config(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    """Keep the per-user config file out of every test."""
    monkeypatch.setattr(lsix_config, "default_config_path",
                        lambda: tmp_path / "missing" / "config.toml")


@pytest.fixture(autouse=True)
def restore_logger_level() -> Iterator[None]:
    """Undo verbosity changes made by main()."""
    level = logger.level
    yield
    logger.setLevel(level)


def _args(*argv: str) -> argparse.Namespace:
    return lsix_cli.build_arg_parser().parse_args(list(argv))


class TestCLIArgumentParsing:
    """Unit tests for CLI flag parsing."""

    def test_defaults(self) -> None:
        """No arguments lists the working directory."""
        args = _args()
        assert args.files == []
        assert not args.recursive
        assert not args.tui
        assert args.mode is None
        assert not args.no_cache
        assert args.config is None

    def test_flags(self) -> None:
        """Every flag lands on the namespace."""
        args = _args("a.png", "pics", "-r", "--tui", "-m", "long",
                     "--no-cache", "-v")
        assert args.files == ["a.png", "pics"]
        assert args.recursive
        assert args.tui
        assert args.mode == "long"
        assert args.no_cache
        assert args.verbose

    def test_verbose_and_quiet_conflict(self) -> None:
        """-v and -q cannot be combined."""
        with pytest.raises(SystemExit):
            _args("-v", "-q")

    def test_bad_mode(self) -> None:
        """Only short and long label modes exist."""
        with pytest.raises(SystemExit):
            _args("-m", "medium")

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        """--version prints the program name and exits cleanly."""
        with pytest.raises(SystemExit) as info:
            _args("--version")
        assert info.value.code == 0
        assert capsys.readouterr().out.startswith("lsix ")


class TestBuildConfig:
    """Layering of file, environment and flags."""

    def test_flags_override(self) -> None:
        """--mode and --no-cache update the loaded config."""
        cfg = lsix_cli.build_config(_args("-m", "long", "--no-cache"))
        assert cfg.layout.label_mode == "long"
        assert not cfg.cache.enabled

    def test_file_then_environment(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Environment values win over the file."""
        config = tmp_path / "config.toml"
        config.write_text("[layout]\ntile_size = 100\ncolors = 32\n",
                          encoding="utf-8")
        monkeypatch.setenv("TILESIZE", "50")
        cfg = lsix_cli.build_config(_args("--config", str(config)))
        assert cfg.layout.tile_size == 50  # noqa: PLR2004
        assert cfg.layout.colors == 32  # noqa: PLR2004


class TestRunFromArgs:
    """Routing to the pipelines."""

    def test_lists_by_default(self, mocker: MockerFixture) -> None:
        """Without --tui the montage pipeline runs."""
        list_images = mocker.patch.object(lsix_main, "list_images")
        browse = mocker.patch.object(lsix_main, "browse_images")
        assert lsix_cli.run_from_args(_args("a.png", "-r")) == EXIT_OK
        assert list_images.call_args.args[0] == ["a.png"]
        assert list_images.call_args.kwargs["recursive"]
        browse.assert_not_called()

    def test_tui(self, mocker: MockerFixture) -> None:
        """--tui opens the browser."""
        list_images = mocker.patch.object(lsix_main, "list_images")
        browse = mocker.patch.object(lsix_main, "browse_images")
        assert lsix_cli.run_from_args(_args("--tui")) == EXIT_OK
        browse.assert_called_once()
        list_images.assert_not_called()

    def test_clear_cache(self, mocker: MockerFixture) -> None:
        """--clear-cache only clears."""
        clear = mocker.patch.object(lsix_main, "clear_cache")
        list_images = mocker.patch.object(lsix_main, "list_images")
        assert lsix_cli.run_from_args(_args("--clear-cache")) == EXIT_OK
        clear.assert_called_once()
        list_images.assert_not_called()

    def test_validate_config_only(
        self,
        mocker: MockerFixture,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Validation alone never touches the terminal."""
        list_images = mocker.patch.object(lsix_main, "list_images")
        with caplog.at_level(logging.INFO):
            code = lsix_cli.run_from_args(_args("--validate-config-only"))
        assert code == EXIT_OK
        assert "validated successfully" in caplog.text
        list_images.assert_not_called()

    def test_verbosity(self, mocker: MockerFixture) -> None:
        """-v lowers the logger threshold to debug."""
        mocker.patch.object(lsix_main, "list_images")
        lsix_cli.run_from_args(_args("-v"))
        assert logger.level == logging.DEBUG


class TestMain:
    """Exit codes returned by the entry point."""

    def test_success(self, mocker: MockerFixture) -> None:
        """A normal run exits zero."""
        mocker.patch.object(lsix_main, "list_images", return_value=2)
        assert lsix_cli.main(["x.png"]) == EXIT_OK

    def test_missing_config_file(
        self,
        tmp_path: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """An explicit config path that does not exist is a usage error."""
        missing = tmp_path / "nope.toml"
        with caplog.at_level(logging.ERROR):
            code = lsix_cli.main(["--config", str(missing)])
        assert code == EXIT_USAGE
        assert "Invalid configuration" in caplog.text

    def test_invalid_config_value(self, tmp_path: Path) -> None:
        """Out of range values are rejected."""
        config = tmp_path / "config.toml"
        config.write_text("[browser]\nmax_cols = 9\n", encoding="utf-8")
        assert lsix_cli.main(["--config", str(config),
                              "--validate-config-only"]) == EXIT_USAGE

    def test_unparsable_config(self, tmp_path: Path) -> None:
        """Broken TOML is a usage error."""
        config = tmp_path / "config.toml"
        config.write_text("[layout\n", encoding="utf-8")
        assert lsix_cli.main(["--config", str(config)]) == EXIT_USAGE

    def test_bad_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A malformed override is a usage error."""
        monkeypatch.setenv("TILESIZE", "huge")
        assert lsix_cli.main(["--validate-config-only"]) == EXIT_USAGE

    def test_unsupported_terminal(
        self,
        mocker: MockerFixture,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A terminal without sixel exits one with a hint."""
        mocker.patch.object(
            lsix_main, "list_images",
            side_effect=EnvironmentUnsupported("set FORCE_GRAPHICS=1"),
        )
        with caplog.at_level(logging.ERROR):
            assert lsix_cli.main([]) == EXIT_FAILURE
        assert "FORCE_GRAPHICS" in caplog.text

    def test_output_closed(self, mocker: MockerFixture) -> None:
        """A reader closing the pipe is not an error."""
        mocker.patch.object(lsix_main, "list_images",
                            side_effect=OutputClosed("closed"))
        silence = mocker.patch.object(lsix_cli, "_silence_stdout")
        assert lsix_cli.main([]) == EXIT_OK
        silence.assert_called_once()

    def test_interrupted(self, mocker: MockerFixture) -> None:
        """Ctrl-C exits with 130."""
        mocker.patch.object(lsix_main, "list_images",
                            side_effect=KeyboardInterrupt)
        assert lsix_cli.main([]) == EXIT_INTERRUPTED

    def test_os_error(self, mocker: MockerFixture) -> None:
        """Unexpected I/O failures exit one."""
        mocker.patch.object(lsix_main, "list_images",
                            side_effect=OSError("disk gone"))
        assert lsix_cli.main([]) == EXIT_FAILURE
