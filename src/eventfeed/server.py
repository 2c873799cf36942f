"""aiohttp application serving the subscription feed.

The handler owns the error taxonomy: missing configuration and unexpected
failures become 500s, upstream failures become 502s. The expansion and
serialization core never sees a failed fetch.
"""

import logging
from typing import AsyncIterator, Callable, Optional

import httpx
from aiohttp import web

from eventfeed.config.constants import (
    FEED_CHARSET,
    FEED_CONTENT_TYPE,
    FEED_RESPONSE_HEADERS,
    MSG_INTERNAL_ERROR,
    MSG_MISCONFIGURED,
    MSG_UPSTREAM_FAILED,
)
from eventfeed.config.settings import SERVER_CONFIG, UPSTREAM_CONFIG, ServerConfig
from eventfeed.core.feed import fetch_feed
from eventfeed.exceptions.errors import FeedConfigurationError, UpstreamFetchError
from eventfeed.storage.credentials import UpstreamCredentials, load_credentials

logger = logging.getLogger(__name__)

CredentialsLoader = Callable[[], UpstreamCredentials]

CREDENTIALS_LOADER = web.AppKey("credentials_loader", CredentialsLoader)
HTTP_CLIENT = web.AppKey("http_client", httpx.AsyncClient)

CORS_PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Max-Age": "86400",
}


async def calendar_feed(request: web.Request) -> web.Response:
    """GET handler returning the ICS document."""
    try:
        credentials = request.app[CREDENTIALS_LOADER]()
    except FeedConfigurationError as exc:
        logger.error("Calendar feed misconfigured: %s", exc)
        return web.Response(status=500, text=MSG_MISCONFIGURED)

    try:
        body = await fetch_feed(credentials, client=request.app.get(HTTP_CLIENT))
    except UpstreamFetchError as exc:
        logger.error("Calendar feed upstream failure: %s", exc)
        return web.Response(status=502, text=MSG_UPSTREAM_FAILED)
    except Exception:
        logger.exception("Calendar feed error")
        return web.Response(status=500, text=MSG_INTERNAL_ERROR)

    return web.Response(
        body=body,
        content_type=FEED_CONTENT_TYPE,
        charset=FEED_CHARSET,
        headers=FEED_RESPONSE_HEADERS,
    )


async def calendar_feed_preflight(request: web.Request) -> web.Response:
    return web.Response(status=204, headers=CORS_PREFLIGHT_HEADERS)


async def _http_client_ctx(app: web.Application) -> AsyncIterator[None]:
    """Share one upstream connection pool across requests."""
    app[HTTP_CLIENT] = httpx.AsyncClient(timeout=UPSTREAM_CONFIG.timeout_seconds)
    yield
    await app[HTTP_CLIENT].aclose()


def create_app(
    credentials_loader: CredentialsLoader = load_credentials,
    http_client: Optional[httpx.AsyncClient] = None,
    config: ServerConfig = SERVER_CONFIG,
) -> web.Application:
    """Create the web application.

    Args:
        credentials_loader: Called per request so rotated keys are picked up.
        http_client: Externally owned upstream client. When omitted, the app
            creates and closes its own.
        config: Listening and routing settings.

    Returns:
        The configured application.
    """
    app = web.Application()
    app[CREDENTIALS_LOADER] = credentials_loader
    if http_client is not None:
        app[HTTP_CLIENT] = http_client
    else:
        app.cleanup_ctx.append(_http_client_ctx)

    app.router.add_get(config.feed_path, calendar_feed)
    app.router.add_route("OPTIONS", config.feed_path, calendar_feed_preflight)
    return app


def run_server(config: ServerConfig = SERVER_CONFIG) -> None:
    """Serve the feed until interrupted."""
    logger.info("Serving calendar feed on http://%s:%d%s", config.host, config.port, config.feed_path)
    web.run_app(create_app(config=config), host=config.host, port=config.port, print=None)
