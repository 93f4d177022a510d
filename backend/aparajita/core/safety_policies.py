"""Safety policy constants."""

from __future__ import annotations

# Mean Earth radius in meters, used by the haversine distance
EARTH_RADIUS_M = 6_371_000.0

# Default radius for surfacing nearby distress alerts
DEFAULT_PROXIMITY_RADIUS_M = 2000.0

# Moves shorter than this since the last lookup refresh are debounced
REFRESH_DISTANCE_M = 100.0

# Alerts expire this long after creation unless resolved
ALERT_TTL_MINUTES = 30

# Terminal alerts are dropped from memory after this long
TERMINAL_ALERT_RETENTION_MINUTES = 120

# Area description used for hotline/legal lookups before an address is known
DEFAULT_AREA_DESCRIPTION = "my area"

# Placeholder shown until the first reverse geocode succeeds
UNKNOWN_ADDRESS = "Locating..."
