"""Utility functions for eventfeed."""

from eventfeed.utils.masking import mask_key, redact_headers
from eventfeed.utils.date_parsing import ensure_utc, parse_timestamp, to_epoch_millis

__all__ = [
    "mask_key",
    "redact_headers",
    "ensure_utc",
    "parse_timestamp",
    "to_epoch_millis",
]
