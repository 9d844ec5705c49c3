"""CLI argument parsing and main entry point."""

from __future__ import annotations

import argparse
import os
import sys
from typing import TYPE_CHECKING

import lsix.config as lsix_config
import lsix.main as lsix_main
from lsix.constants import (
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_OK,
    EXIT_USAGE,
)
from lsix.errors import ConfigError, EnvironmentUnsupported, OutputClosed
from lsix.logging_utils import logger, set_verbosity
from lsix.runtime.version import resolve_project_version

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Sequence


def build_arg_parser() -> argparse.ArgumentParser:
    """Construct the argument parser for the command-line interface."""
    p = argparse.ArgumentParser(
        prog="lsix",
        description=(
            "Like ls, but for images. Shows thumbnails with filenames "
            "directly in a sixel capable terminal."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  lsix\n"
            "  lsix ~/Pictures -r\n"
            "  lsix --tui *.jpg\n\n"
            "Environment:\n"
            "  FORCE_GRAPHICS=1   assume sixel support without probing\n"
            "  FORCE_WIDTH=N      terminal width in pixels\n"
            "  FORCE_BACKGROUND, FORCE_FOREGROUND  tile colors\n"
            "  SKIP_QUERIES=1     never query the terminal\n"
            "  TILESIZE, COLORS, SHADOW  montage overrides"
        ),
    )
    p.add_argument(
        "files", nargs="*", metavar="FILES",
        help="Image files or directories to display (default: current "
             "directory)")
    p.add_argument(
        "-r", "--recursive", action="store_true",
        help="Descend into sub-directories of directory arguments")
    p.add_argument(
        "-m", "--mode", choices=["short", "long"], default=None,
        help="Label tiles with the file name (short) or full path (long)")
    p.add_argument(
        "--tui", action="store_true",
        help="Open the interactive grid browser instead of printing rows")

    cache = p.add_argument_group("cache")
    cache.add_argument(
        "--no-cache", action="store_true",
        help="Render every row without reading or writing the row cache")
    cache.add_argument(
        "--clear-cache", action="store_true",
        help="Delete cached rows and exit")

    cfg = p.add_argument_group("config")
    cfg.add_argument(
        "--config", type=str,
        help="Path to config.toml file")
    cfg.add_argument(
        "--validate-config-only", action="store_true",
        help="Validate config and environment overrides, then exit")

    log = p.add_mutually_exclusive_group()
    log.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log debug details to stderr")
    log.add_argument(
        "-q", "--quiet", action="store_true",
        help="Only log errors")

    p.add_argument(
        "--version", action="version",
        version=f"%(prog)s {resolve_project_version()}")
    return p


def build_config(args: argparse.Namespace) -> lsix_config.LsixConfig:
    """Load the config file and overlay environment and CLI overrides."""
    cfg = lsix_config.load_config(args.config)
    updates: dict[str, object] = {}
    if args.mode is not None:
        updates["layout"] = cfg.layout.model_copy(
            update={"label_mode": args.mode})
    if args.no_cache:
        updates["cache"] = cfg.cache.model_copy(update={"enabled": False})
    return cfg.model_copy(update=updates) if updates else cfg


def run_from_args(args: argparse.Namespace) -> int:
    """Run lsix from parsed command-line arguments."""
    set_verbosity(verbose=args.verbose, quiet=args.quiet)
    cfg = build_config(args)
    if args.validate_config_only:
        logger.info("Config %s validated successfully.",
                    args.config or lsix_config.default_config_path())
        return EXIT_OK
    if args.clear_cache:
        lsix_main.clear_cache(cfg)
        return EXIT_OK
    if args.tui:
        lsix_main.browse_images(args.files, cfg, recursive=args.recursive)
    else:
        lsix_main.list_images(args.files, cfg, recursive=args.recursive)
    return EXIT_OK


def _silence_stdout() -> None:
    """Point stdout at devnull so interpreter shutdown does not flush."""
    try:
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
    except (OSError, ValueError) as exc:
        logger.debug("Could not detach stdout: %s", exc)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command-line interface and return the exit code."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    try:
        return run_from_args(args)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_USAGE
    except EnvironmentUnsupported as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE
    except OutputClosed:
        _silence_stdout()
        return EXIT_OK
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    except OSError as exc:
        logger.error("I/O error: %s", exc)
        return EXIT_FAILURE


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
