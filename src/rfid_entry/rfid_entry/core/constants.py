"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DUPLICATE_WINDOW_SECONDS = 5 * 60
SIGNUP_TOKEN_TTL_SECONDS = 10 * 60
SIGNUP_TOKEN_BYTES = 20
ACTIVE_ENTRIES_LIMIT = 100
DEFAULT_FORM_URL = "http://localhost:3000"
