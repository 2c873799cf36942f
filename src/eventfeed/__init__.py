"""
eventfeed - Subscription calendar feed for published events

Expands stored recurrence rules into concrete occurrences and serializes
them as an iCalendar feed that calendar clients can subscribe to.
"""

__version__ = "1.0.0"

# Public API - import commonly used components
from eventfeed.config.settings import SERVER_CONFIG, UPSTREAM_CONFIG
from eventfeed.exceptions.errors import (
    EventFeedError,
    FeedConfigurationError,
    UpstreamFetchError,
)
from eventfeed.core.event_model import EventRecord, Occurrence
from eventfeed.core.recurrence import default_window, expand
from eventfeed.core.ics_builder import serialize
from eventfeed.core.feed import build_feed

__all__ = [
    # Version
    "__version__",
    # Config
    "SERVER_CONFIG",
    "UPSTREAM_CONFIG",
    # Exceptions
    "EventFeedError",
    "FeedConfigurationError",
    "UpstreamFetchError",
    # Core
    "EventRecord",
    "Occurrence",
    "default_window",
    "expand",
    "serialize",
    "build_feed",
]
