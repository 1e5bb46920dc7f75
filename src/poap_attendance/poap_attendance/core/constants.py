"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

BADGE_ROLE_STUDENT = "Student"
BADGE_NO_EXPIRY = 0

DEFAULT_BADGE_TIMEOUT_SECONDS = 10
DEFAULT_ORACLE_TIMEOUT_SECONDS = 5
DEFAULT_RETRY_BATCH = 50
DEFAULT_HISTORY_LIMIT = 200
SESSION_LIFETIME_HOURS = 24
