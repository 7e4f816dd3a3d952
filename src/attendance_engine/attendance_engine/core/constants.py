"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_FULL_DAY_HOURS = 8.0
DEFAULT_HALF_DAY_HOURS = 4.0
DEFAULT_LATE_GRACE_MINUTES = 5
DEFAULT_TIMEZONE = "Asia/Kolkata"
DEFAULT_HISTORY_LIMIT = 31
DEFAULT_LIST_LIMIT = 200

EARTH_RADIUS_METERS = 6_371_000.0
