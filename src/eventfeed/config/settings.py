"""Settings dataclasses for the upstream source and the HTTP server."""

from dataclasses import dataclass

from eventfeed.config.constants import DEFAULT_HOST, DEFAULT_PORT


@dataclass(frozen=True)
class UpstreamConfig:
    """How published events are queried from the Supabase REST API."""

    table: str = "events"
    status_filter: str = "eq.published"
    order: str = "date.asc"
    timeout_seconds: float = 15.0

    @property
    def path(self) -> str:
        return f"/rest/v1/{self.table}"

    @property
    def params(self) -> dict:
        return {"status": self.status_filter, "order": self.order}


@dataclass(frozen=True)
class ServerConfig:
    """Where the feed endpoint listens."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    feed_path: str = "/api/calendar.ics"


UPSTREAM_CONFIG = UpstreamConfig()
SERVER_CONFIG = ServerConfig()
