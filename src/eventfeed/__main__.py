"""Entry point for running eventfeed as a module.

Usage: python -m eventfeed {serve,export,store-key}
"""

import argparse
import asyncio
import getpass
import logging
import sys
from pathlib import Path
from typing import List, Optional

from eventfeed.config.settings import SERVER_CONFIG, ServerConfig
from eventfeed.exceptions.errors import EventFeedError

logger = logging.getLogger("eventfeed")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="eventfeed", description="Publish events as an ICS feed.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Serve the feed over HTTP")
    serve.add_argument("--host", default=SERVER_CONFIG.host)
    serve.add_argument("--port", type=int, default=SERVER_CONFIG.port)

    export = sub.add_parser("export", help="Fetch events and write the feed once")
    export.add_argument("-o", "--output", help="Output file (default: stdout)")

    store = sub.add_parser("store-key", help="Store the Supabase anon key")
    store.add_argument("--url", help="Supabase project URL to store alongside the key")

    return parser


def _export(output: Optional[str]) -> int:
    from eventfeed.core.feed import fetch_feed
    from eventfeed.storage.credentials import load_credentials

    document = asyncio.run(fetch_feed(load_credentials()))
    if output:
        Path(output).write_bytes(document)
        logger.info("Wrote %d bytes to %s", len(document), output)
    else:
        sys.stdout.buffer.write(document)
    return 0


def _store_key(url: Optional[str]) -> int:
    from eventfeed.storage.credentials import save_anon_key

    anon_key = getpass.getpass("Supabase anon key: ")
    return 0 if save_anon_key(anon_key, url) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    try:
        if args.command == "serve":
            from eventfeed.server import run_server

            run_server(ServerConfig(host=args.host, port=args.port))
            return 0
        if args.command == "export":
            return _export(args.output)
        return _store_key(args.url)
    except EventFeedError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
