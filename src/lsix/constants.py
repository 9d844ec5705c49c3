"""
Constants used internally by lsix.

These are implementation-level values that should not be overridden
via config files or CLI arguments.
"""

# Terminal types that display sixel without probing
KNOWN_GRAPHICS_TERMS = (
    "xterm",
    "mlterm",
    "wezterm",
    "foot",
    "contour",
    "kitty",
    "alacritty",
    "mintty",
    "cygwin",
)
KNOWN_GRAPHICS_TERM_PREFIX = "yaft"

# Escape sequences
ESC = "\x1b"
PRIMARY_DEVICE_ATTRIBUTES = "\x1b[c"
XTSMGRAPHICS_GEOMETRY = "\x1b[?2;1;0S"
WINDOW_PIXEL_SIZE = "\x1b[14t"
OSC_FOREGROUND_QUERY = "\x1b]10;?\x1b\\"
OSC_BACKGROUND_QUERY = "\x1b]11;?\x1b\\"
STRING_TERMINATOR = "\x1b\\"
ENTER_ALT_SCREEN = "\x1b[?1049h"
LEAVE_ALT_SCREEN = "\x1b[?1049l"
HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
CLEAR_SCREEN = "\x1b[2J\x1b[H"

# Device attribute code advertising sixel
SIXEL_ATTRIBUTE = "4"

# Probe deadlines in seconds
CAPABILITY_TIMEOUT = 0.05
COLOR_TIMEOUT = 0.25

# Pixel width fallbacks
PIXELS_PER_COLUMN = 12

# Sixel encoding
SIXEL_MAX_REGISTERS = 256
SIXEL_BAND_HEIGHT = 6
SIXEL_CHAR_OFFSET = 63
SIXEL_RLE_MIN = 4

# Layout derivation divisors
MARGIN_DIVISOR = 201
FONT_DIVISOR = 10
MIN_FONT_SIZE = 10

# Grid browser
BROWSER_MIN_CELL_COLS = 12
BROWSER_MIN_CELL_ROWS = 8
BROWSER_HEADER_ROWS = 3
BROWSER_STATUS_ROWS = 3
BROWSER_FALLBACK_CELL_PX = (8, 16)
COLOR_HIGHLIGHT = "\x1b[1;33m"
COLOR_RESET = "\x1b[0m"

# Label halving threshold in characters
LABEL_SPAN = 15

# Internal color constants
COLOR_MODE_RGB = "RGB"
COLOR_MODE_RGBA = "RGBA"
COLOR_BLACK = (0, 0, 0)
SHADOW_ALPHA = 130
SHADOW_OFFSET_DIVISOR = 60

# Exit codes
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130
