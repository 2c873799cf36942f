"""Exception types raised at the feed boundary.

The expansion and serialization core never raises these; they describe
failures that happen before the core is invoked.
"""

from typing import Optional


class EventFeedError(Exception):
    """Base class for all eventfeed errors."""


class FeedConfigurationError(EventFeedError):
    """Raised when the upstream URL or API key is not configured."""

    def __init__(self, missing: Optional[list] = None):
        self.missing = list(missing or [])
        detail = ", ".join(self.missing) if self.missing else "credentials"
        super().__init__(f"Missing upstream configuration: {detail}")


class UpstreamFetchError(EventFeedError):
    """Raised when the event source cannot be read."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(message)


class EventRecordError(EventFeedError):
    """Raised when an upstream row lacks the fields needed to build an event."""

    def __init__(self, missing_fields=None, event_id: str = "Unknown"):
        self.missing_fields = set(missing_fields or ())
        self.event_id = event_id
        fields = ", ".join(sorted(self.missing_fields))
        super().__init__(f"Event '{event_id}' is missing required fields: {fields}")
