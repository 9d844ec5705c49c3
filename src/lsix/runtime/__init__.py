"""Runtime helpers shared by the command-line entry points."""

from .version import resolve_project_version

__all__ = ["resolve_project_version"]
