"""Centralized constants for eventfeed.

Everything the feed emits as fixed document metadata lives here, along with
the names used to look up credentials and the expansion defaults.
"""

# Credential storage constants
KEYRING_SERVICE_NAME = "eventfeed"
KEYRING_ACCOUNT_NAME = "supabase_anon_key"

# Environment variable names
SUPABASE_URL_ENV_VAR = "SUPABASE_URL"
SUPABASE_KEY_ENV_VAR = "SUPABASE_ANON_KEY"
FEED_TIMEZONE_ENV_VAR = "EVENTFEED_TIMEZONE"

# ICS calendar constants
ICS_PRODID = "-//CCP Events//EN"
ICS_VERSION = "2.0"
ICS_CALSCALE = "GREGORIAN"
ICS_METHOD = "PUBLISH"
ICS_CALNAME = "CCP Events"
ICS_TIMEZONE = "Europe/Dublin"
ICS_REFRESH_HOURS = 6
ICS_UID_NAMESPACE = "ccp-events"
ICS_SEQUENCE = 0
ICS_STATUS = "CONFIRMED"

# The data model carries no end time
DEFAULT_EVENT_DURATION_MINUTES = 60

# Recurrence expansion defaults (730 is roughly two years of daily events)
DEFAULT_MAX_OCCURRENCES = 730
DEFAULT_RECURRENCE_INTERVAL = 1
DEFAULT_WINDOW_YEARS = 2

# Response metadata
FEED_FILENAME = "ccp-events.ics"
FEED_CONTENT_TYPE = "text/calendar"
FEED_CHARSET = "utf-8"
FEED_CACHE_SECONDS = 3600
FEED_RESPONSE_HEADERS = {
    "Content-Disposition": f'inline; filename="{FEED_FILENAME}"',
    "Cache-Control": f"public, max-age={FEED_CACHE_SECONDS}",
    "Access-Control-Allow-Origin": "*",
}

# Boundary error messages
MSG_MISCONFIGURED = "Server misconfiguration: missing Supabase credentials."
MSG_UPSTREAM_FAILED = "Failed to fetch events."
MSG_INTERNAL_ERROR = "Internal error generating calendar feed."

# Server defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
