"""Helpers for accessing the installed package version."""

from __future__ import annotations

import tomllib
from importlib import metadata as importlib_metadata
from pathlib import Path

from lsix.logging_utils import logger


def resolve_project_version() -> str:
    """
    Return the best-guess project version without adding dependencies.

    Checks the installed distribution first, then walks up the filesystem
    looking for a pyproject.toml whose project is named lsix, and finally
    falls back to "0.0.0" for development contexts.
    """
    try:
        return importlib_metadata.version("lsix")
    except importlib_metadata.PackageNotFoundError:
        pass

    for parent in Path(__file__).resolve().parents:
        pyproject_path = parent / "pyproject.toml"
        if not pyproject_path.is_file():
            continue
        try:
            with pyproject_path.open("rb") as handle:
                data = tomllib.load(handle)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            logger.warning("Error reading %s: %s", pyproject_path, exc)
            break

        project = data.get("project", {})
        if project.get("name") != "lsix":
            continue
        version = project.get("version")
        if isinstance(version, str) and version.strip():
            return version.strip()
        break

    return "0.0.0"
