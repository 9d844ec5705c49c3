"""Shared default values for user-facing configuration settings."""

# Terminal
DEFAULT_BACKGROUND = "#282a36"
DEFAULT_FOREGROUND = "white"
DEFAULT_PIXEL_WIDTH = 1920
DEFAULT_COLOR_BUDGET = 256
MIN_COLOR_BUDGET = 16

# Layout
DEFAULT_TILE_SIZE = 360
DEFAULT_SHADOW = False
DEFAULT_LABEL_MODE = "short"

# Sources
IMAGE_EXTENSIONS: frozenset[str] = frozenset({
    "jpg", "jpeg", "png", "gif", "webp", "tiff", "tif", "pnm", "ppm",
    "pgm", "pbm", "pam", "xbm", "xpm", "bmp", "ico", "svg", "eps",
})
FIRST_FRAME_EXTENSIONS: frozenset[str] = frozenset({"gif", "webp"})

# Cache
DEFAULT_CACHE_ENABLED = True
CACHE_APP_NAME = "lsix"
CACHE_SUFFIX = ".six"

# Browser
DEFAULT_BROWSER_MAX_COLS = 5
DEFAULT_BROWSER_MAX_ROWS = 3
DEFAULT_FULLSCREEN_MAX_DIMENSION = 1920
DEFAULT_POLL_INTERVAL_MS = 100
