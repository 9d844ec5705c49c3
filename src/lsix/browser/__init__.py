"""Interactive grid browser over validated images."""

from .app import BrowserApp, run_browser
from .state import BrowserState, Outcome, fit_grid

__all__ = ["BrowserApp", "BrowserState", "Outcome", "fit_grid", "run_browser"]
