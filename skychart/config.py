"""Configuration constants for the sky chart engine.

Layout, colours and interaction thresholds live here so that the renderer,
view transform and interaction controller agree on them. The Flask app layers
``SKYCHART_*`` environment overrides on top of the observer and viewport
defaults.
"""
from typing import Final

# -- Default observer (Port of Spain, Trinidad) --
DEFAULT_LATITUDE: Final[float] = 10.25
DEFAULT_LONGITUDE: Final[float] = -61.63

# -- Viewport --
DEFAULT_WIDTH: Final[int] = 800
DEFAULT_HEIGHT: Final[int] = 800

# -- View transform --
MIN_ZOOM: Final[float] = 0.5
MAX_ZOOM: Final[float] = 3.0
WHEEL_ZOOM_STEP: Final[float] = 1.1
"""Zoom multiplier per wheel notch. Zooming out divides by the same step."""

BUTTON_ZOOM_STEP: Final[float] = 1.2

# -- Hit testing --
HIT_RADIUS_PX: Final[float] = 15.0
"""Pick radius in chart-space pixels."""

# -- Catalog filtering --
LIMITING_MAGNITUDE: Final[float] = 5.5
GLOW_MAGNITUDE: Final[float] = 1.5
"""Stars brighter than this get a radial glow and an inline label."""

# -- Grid --
ALTITUDE_RINGS: Final[tuple[float, ...]] = (30.0, 60.0)

# -- Colours --
BACKGROUND_COLOR: Final[str] = "#0a0d1a"
HORIZON_COLOR: Final[str] = "#1a2040"
GRID_COLOR: Final[str] = "#6496ff"
GRID_OPACITY: Final[float] = 0.15
CONSTELLATION_LINE_COLOR: Final[str] = "#64b4ff"
CONSTELLATION_LINE_OPACITY: Final[float] = 0.4
CONSTELLATION_NAME_COLOR: Final[str] = "#96c8ff"
CARDINAL_COLOR: Final[str] = "#ffcc00"
NORTH_COLOR: Final[str] = "#ff6666"
LABEL_COLOR: Final[str] = "#c8dcff"
OVERLAY_COLOR: Final[str] = "#96b4ff"
STAR_DEFAULT_COLOR: Final[str] = "#ffffff"

SPECTRAL_COLORS: Final[dict[str, str]] = {
    "O": "#aaccff",
    "B": "#aaccff",
    "A": "#ffffff",
    "F": "#ffffcc",
    "G": "#ffff99",
    "K": "#ffcc66",
    "M": "#ff9966",
}

# -- Text --
FONT_FAMILY: Final[str] = "'Outfit', 'Helvetica', sans-serif"

# -- Nearby events --
EVENT_WINDOW_HOURS: Final[float] = 24.0
EVENT_LIST_LIMIT: Final[int] = 5
