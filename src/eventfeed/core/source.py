"""Async client for reading published events from the Supabase REST API."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from eventfeed.config.settings import UPSTREAM_CONFIG, UpstreamConfig
from eventfeed.exceptions.errors import UpstreamFetchError
from eventfeed.storage.credentials import UpstreamCredentials
from eventfeed.utils.masking import redact_headers

logger = logging.getLogger(__name__)


class SupabaseEventSource:
    """Fetches publishable event rows. One GET per call, no retries."""

    def __init__(
        self,
        credentials: UpstreamCredentials,
        config: UpstreamConfig = UPSTREAM_CONFIG,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize the source.

        Args:
            credentials: Project URL and anon key.
            config: Table, filter and timeout settings.
            client: Optional externally owned client; it is not closed here.
        """
        self.credentials = credentials
        self.config = config
        self.client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "SupabaseEventSource":
        if self.client is None:
            self.client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self

    async def __aexit__(self, _exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        if self._owns_client and self.client is not None:
            await self.client.aclose()
            self.client = None

    @property
    def url(self) -> str:
        return self.credentials.url.rstrip("/") + self.config.path

    def _headers(self) -> Dict[str, str]:
        key = self.credentials.anon_key
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    async def fetch_events(self) -> List[Dict]:
        """Return the published event rows, ordered by date.

        Raises:
            UpstreamFetchError: On transport errors, non-success responses or
                a payload that is not a JSON array.
        """
        if self.client is None:
            raise RuntimeError("SupabaseEventSource must be used as an async context manager")

        headers = self._headers()
        logger.debug("Fetching events from %s with headers %s", self.url, redact_headers(headers))
        try:
            response = await self.client.get(self.url, params=self.config.params, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Network error fetching events from %s: %s", self.url, exc)
            raise UpstreamFetchError(f"Network error: {exc}") from exc

        if not response.is_success:
            body = response.text
            logger.error("Supabase error: %s %s", response.status_code, body)
            raise UpstreamFetchError(
                f"HTTP {response.status_code}", status=response.status_code, body=body
            )

        try:
            rows = response.json()
        except ValueError as exc:
            logger.error("Supabase returned invalid JSON: %s", exc)
            raise UpstreamFetchError("Invalid JSON payload") from exc

        if not isinstance(rows, list):
            logger.error("Expected a list of events, but got %s", type(rows).__name__)
            raise UpstreamFetchError("Unexpected payload shape")

        logger.info("Fetched %d event row(s)", len(rows))
        return rows
