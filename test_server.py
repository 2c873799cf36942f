"""Tests for the HTTP feed endpoint and its error mapping."""

from datetime import datetime, timedelta
from unittest.mock import patch

import httpx
import pytz
from aiohttp.test_utils import AioHTTPTestCase

from eventfeed.core.ics_builder import format_utc
from eventfeed.exceptions.errors import FeedConfigurationError
from eventfeed.server import create_app
from eventfeed.storage.credentials import UpstreamCredentials

CREDENTIALS = UpstreamCredentials(url="https://example.supabase.co", anon_key="anon-key-1234567890")

ANCHOR = (datetime.now(pytz.utc) + timedelta(days=1)).replace(hour=10, minute=0, second=0, microsecond=0)

ROWS = [
    {
        "id": "e1",
        "title": "Board meeting",
        "description": None,
        "date": ANCHOR.isoformat(),
        "location": "Room 4",
        "category": None,
        "recurrence_type": "weekly",
        "recurrence_interval": 1,
        "recurrence_end_date": None,
        "recurrence_occurrences": 2,
        "recurrence_days_of_week": None,
        "recurrence_custom_dates": None,
    },
]


class TestCalendarFeedEndpoint(AioHTTPTestCase):
    """GET /api/calendar.ics"""

    async def get_application(self):
        self.upstream_requests = []
        self.upstream_status = 200
        self.upstream_payload = ROWS
        self.upstream_down = False
        self.configured = True

        client = httpx.AsyncClient(transport=httpx.MockTransport(self._upstream))

        async def close_client(_app):
            await client.aclose()

        app = create_app(credentials_loader=self._load_credentials, http_client=client)
        app.on_cleanup.append(close_client)
        return app

    def _load_credentials(self):
        if not self.configured:
            raise FeedConfigurationError(["SUPABASE_URL"])
        return CREDENTIALS

    def _upstream(self, request: httpx.Request) -> httpx.Response:
        self.upstream_requests.append(request)
        if self.upstream_down:
            raise httpx.ConnectError("connection refused", request=request)
        if self.upstream_status != 200:
            return httpx.Response(self.upstream_status, text="permission denied for table events")
        return httpx.Response(200, json=self.upstream_payload)

    async def test_feed_response(self):
        resp = await self.client.request("GET", "/api/calendar.ics")

        self.assertEqual(resp.status, 200)
        self.assertEqual(resp.headers["Content-Type"], "text/calendar; charset=utf-8")
        self.assertEqual(resp.headers["Content-Disposition"], 'inline; filename="ccp-events.ics"')
        self.assertEqual(resp.headers["Cache-Control"], "public, max-age=3600")
        self.assertEqual(resp.headers["Access-Control-Allow-Origin"], "*")

        body = await resp.text()
        self.assertTrue(body.startswith("BEGIN:VCALENDAR\r\n"))
        self.assertTrue(body.endswith("END:VCALENDAR\r\n"))
        self.assertEqual(body.count("BEGIN:VEVENT"), 2)
        self.assertIn("SUMMARY:Board meeting", body)
        self.assertIn(f"DTSTART:{format_utc(ANCHOR)}", body)
        self.assertIn(f"DTSTART:{format_utc(ANCHOR + timedelta(weeks=1))}", body)

    async def test_upstream_query(self):
        await self.client.request("GET", "/api/calendar.ics")

        self.assertEqual(len(self.upstream_requests), 1)
        sent = self.upstream_requests[0]
        self.assertEqual(sent.url.path, "/rest/v1/events")
        self.assertEqual(sent.url.params["status"], "eq.published")
        self.assertEqual(sent.url.params["order"], "date.asc")
        self.assertEqual(sent.headers["apikey"], CREDENTIALS.anon_key)
        self.assertEqual(sent.headers["Authorization"], f"Bearer {CREDENTIALS.anon_key}")

    async def test_missing_configuration_is_a_server_error(self):
        self.configured = False

        resp = await self.client.request("GET", "/api/calendar.ics")

        self.assertEqual(resp.status, 500)
        self.assertEqual(await resp.text(), "Server misconfiguration: missing Supabase credentials.")
        self.assertEqual(self.upstream_requests, [])

    async def test_upstream_error_is_a_bad_gateway(self):
        self.upstream_status = 401

        resp = await self.client.request("GET", "/api/calendar.ics")

        self.assertEqual(resp.status, 502)
        self.assertEqual(await resp.text(), "Failed to fetch events.")

    async def test_upstream_network_error_is_a_bad_gateway(self):
        self.upstream_down = True

        resp = await self.client.request("GET", "/api/calendar.ics")

        self.assertEqual(resp.status, 502)

    async def test_unexpected_failure_is_an_internal_error(self):
        with patch("eventfeed.server.fetch_feed", side_effect=RuntimeError("boom")):
            resp = await self.client.request("GET", "/api/calendar.ics")

        self.assertEqual(resp.status, 500)
        self.assertEqual(await resp.text(), "Internal error generating calendar feed.")

    async def test_cors_preflight(self):
        resp = await self.client.request("OPTIONS", "/api/calendar.ics")

        self.assertEqual(resp.status, 204)
        self.assertEqual(resp.headers["Access-Control-Allow-Origin"], "*")
        self.assertIn("GET", resp.headers["Access-Control-Allow-Methods"])
