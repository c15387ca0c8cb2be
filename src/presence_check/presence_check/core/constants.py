"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DESCRIPTOR_LENGTH = 128
DEFAULT_MATCH_THRESHOLD = 0.55

EARTH_RADIUS_METERS = 6_371_000

DEFAULT_SLOT_RADIUS_METERS = 200
DEFAULT_SLOT_DURATION_MINUTES = 20
DEFAULT_RECENT_SLOT_DAYS = 7

# Upper bounds for teacher-supplied slot parameters
MAX_SLOT_RADIUS_METERS = 50_000
MAX_SLOT_DURATION_MS = 24 * 60 * 60 * 1000
MAX_RECENT_SLOT_DAYS = 366

TOKEN_SEPARATOR = "_"
