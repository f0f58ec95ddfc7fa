"""
Exhibition floor plan service — domain constants.

Keep this module import-clean: no imports from other expo_floor modules.
"""

# ---------------------------------------------------------------------------
# Occupancy heatmap weights, keyed by booth status value
# ---------------------------------------------------------------------------
STATUS_WEIGHTS = {
    "booked": 1.0,
    "reserved": 0.5,
    "maintenance": 0.25,
    "available": 0.0,
}

# ---------------------------------------------------------------------------
# Export overlays: status colours used by the rasterizer
# ---------------------------------------------------------------------------
STATUS_COLORS = {
    "available": "green",
    "booked": "blue",
    "reserved": "orange",
    "maintenance": "gray",
}
OVERLAY_LABEL_FONT_SIZE = 20
OVERLAY_COMPANY_FONT_SIZE = 14
OVERLAY_DOT_FONT_SIZE = 30
# Company line sits this far below the booth label.
OVERLAY_COMPANY_OFFSET_Y = 30
# Company names longer than this are truncated on exported images.
OVERLAY_COMPANY_MAX_CHARS = 20

# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------
BOOTH_ID_PREFIX = "booth"
SHAPE_ID_PREFIX = "shape"
BOOTH_NUMBER_PREFIX = "B"
UNCATEGORIZED = "uncategorized"

DEFAULT_PLAN_VERSION = "1.0"
DEFAULT_GRID_SIZE = 20
DEFAULT_SCALE = 0.1

# Duration suffixes accepted for share-link lifetimes ("30m", "24h", "7d").
DURATION_UNITS = {
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 7 * 86400,
}
