"""Custom exceptions for eventfeed."""

from eventfeed.exceptions.errors import (
    EventFeedError,
    FeedConfigurationError,
    UpstreamFetchError,
    EventRecordError,
)

__all__ = [
    "EventFeedError",
    "FeedConfigurationError",
    "UpstreamFetchError",
    "EventRecordError",
]
