"""Centralized constants for the flashdeck domain.

Defaults shared by the config layer, services and interfaces live here so
every layer imports from a single source of truth.
"""

# ---------- Practice defaults ----------
DEFAULT_SESSION_SIZE = 10
DEFAULT_RANDOM_ORDER = True
SESSION_IDLE_TTL_SECONDS = 3600  # HTTP sessions untouched this long are evicted

# ---------- Stats ----------
PERCENT_MIN = 0
PERCENT_MAX = 100
MS_PER_SECOND = 1000
SECONDS_PER_MINUTE = 60

# ---------- SQLite ----------
SQLITE_SCHEMA_VERSION = 1
SQLITE_BUSY_TIMEOUT = 30.0  # seconds

# ---------- HTTP ----------
DEFAULT_SERVER_HOST = "127.0.0.1"
DEFAULT_SERVER_PORT = 8787
