"""
Lunch Scraper — Entrypoint

Configures structlog, then either runs the scrape supervisor (once or on a
cron schedule) or serves the stored data over HTTP.

Run via:
    python -m lunchscraper.main scrape
    python -m lunchscraper.main scrape --cron "0 30 9 * * mon-fri" --cache-path cache.json.gz
    python -m lunchscraper.main serve --listen "[::]:20666" json
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import structlog
import uvicorn

from lunchscraper import __version__
from lunchscraper.config import LogFormat, settings
from lunchscraper.fetch.client import CacheOptions
from lunchscraper.scrape.supervisor import run_scrape
from lunchscraper.scrapers import get_registrations
from lunchscraper.store import SiteStore
from lunchscraper.web.app import create_app


# ---------------------------------------------------------------------------
# Structlog Configuration
# ---------------------------------------------------------------------------


def configure_logging(log_level: str = "INFO", log_format: LogFormat = LogFormat.JSON) -> None:
    """
    Set up structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        log_format: JSON lines for production, coloured console for humans.
    """
    # Configure stdlib logging first (for third-party libraries)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    renderer = (
        structlog.dev.ConsoleRenderer()
        if log_format == LogFormat.CONSOLE
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

DEFAULT_LISTEN = "[::]:20666"
SERVE_KINDS = ("json", "html", "all")


def parse_listen(value: str) -> tuple[str, int]:
    """Split "host:port" (IPv6 hosts in brackets) into (host, port)."""
    host, sep, port = value.rpartition(":")
    if not sep or not port.isdigit() or not 0 < int(port) < 65536:
        raise argparse.ArgumentTypeError(f"expected HOST:PORT, got {value!r}")
    return host.strip("[]") or "0.0.0.0", int(port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lunchscraper", description="Lunch menu scraper")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    parser.add_argument(
        "--log-format",
        type=LogFormat,
        choices=list(LogFormat),
        default=settings.LOG_FORMAT,
    )
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")

    sub = parser.add_subparsers(dest="command", required=True)

    scrape = sub.add_parser("scrape", help="Scrape all registered sites and store the results")
    scrape.add_argument(
        "--cron",
        default=settings.SCRAPE_CRON,
        help="Cron expression (5, 6 or 7 fields). Without one, scrape once and exit.",
    )
    scrape.add_argument("--timezone", default=settings.SCRAPE_TIMEZONE)
    scrape.add_argument("--cache-ttl", type=float, default=None, help="Seconds; 0 disables the cache")
    scrape.add_argument("--cache-capacity", type=int, default=None)
    scrape.add_argument("--cache-path", type=Path, default=None)
    scrape.add_argument("--request-delay", type=float, default=None, help="Seconds")
    scrape.add_argument("--request-timeout", type=float, default=None, help="Seconds")
    scrape.add_argument(
        "--only",
        action="append",
        default=None,
        metavar="NAME",
        help="Scraper name or site key (e.g. se/gbg/lh); may be repeated",
    )

    serve = sub.add_parser("serve", help="Serve the stored lunch data over HTTP")
    serve.add_argument(
        "--listen",
        type=parse_listen,
        default=DEFAULT_LISTEN,
        metavar="HOST:PORT",
        help="Listen address, e.g. 127.0.0.1:8080 or [::]:20666",
    )
    serve.add_argument(
        "kind",
        choices=SERVE_KINDS,
        nargs="?",
        default="all",
        help="Which routes to mount (default: all)",
    )
    return parser


async def scrape(args: argparse.Namespace) -> int:
    logger = structlog.get_logger(__name__)

    try:
        registrations = get_registrations(args.only)
    except KeyError as e:
        logger.error("unknown_scraper", name=e.args[0])
        return 1

    options = CacheOptions.from_settings(
        request_delay=args.request_delay,
        request_timeout=args.request_timeout,
        cache_ttl=args.cache_ttl,
        cache_capacity=args.cache_capacity,
        cache_path=args.cache_path,
    )
    store = SiteStore.from_url(args.database_url)

    try:
        healthy = await run_scrape(
            registrations,
            store,
            options,
            schedule=args.cron,
            timezone=args.timezone,
        )
    except Exception as e:
        logger.error("scrape_startup_failed", error=str(e), error_type=type(e).__name__)
        return 1

    if not healthy:
        logger.warning("scrape_finished_with_dead_tasks")
    logger.info("scrape_finished")
    return 0


def serve(args: argparse.Namespace) -> int:
    logger = structlog.get_logger(__name__)
    host, port = args.listen
    app = create_app(
        database_url=args.database_url,
        json_routes=args.kind in ("json", "all"),
        html_routes=args.kind in ("html", "all"),
    )
    logger.info("web_server_starting", host=host, port=port, kind=args.kind)
    # log_config=None keeps uvicorn on the logging set up by configure_logging
    uvicorn.run(app, host=host, port=port, log_config=None)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_format)
    logger = structlog.get_logger(__name__)
    logger.info("lunchscraper_startup", version=__version__, command=args.command)

    if args.command == "scrape":
        return asyncio.run(scrape(args))
    if args.command == "serve":
        return serve(args)
    return 2


# ---------------------------------------------------------------------------
# CLI Entry
# ---------------------------------------------------------------------------


if __name__ == "__main__":
    sys.exit(main())
