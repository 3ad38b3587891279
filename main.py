"""Job Scraper: single CLI entry point.

Two commands:

``serve``   start the FastAPI server under uvicorn.
``scrape``  run one multi-site scrape in-process and print the jobs as JSON.

Boots logging, parses arguments, dispatches, and exits with the correct
POSIX code. No scraping logic lives here.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# MODULE-LEVEL SETUP  (runs at import time)
# ---------------------------------------------------------------------------

# override=False so values already in the process environment win.
load_dotenv(override=False)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[logging.StreamHandler(sys.stderr)],
)

logger: logging.Logger = logging.getLogger("main")

# Deferred imports so env is loaded first.
from config.settings import scrape_config, server_config  # noqa: E402
from scrapers.errors import ConfigurationError  # noqa: E402
from scrapers.orchestrator import MultiSiteOrchestrator  # noqa: E402

__all__ = ["main"]


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse and return CLI arguments."""
    parser = argparse.ArgumentParser(description="Human-paced multi-site job scraper")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=server_config.host)
    serve.add_argument("--port", type=int, default=server_config.port)

    scrape = sub.add_parser("scrape", help="Scrape once and print JSON to stdout")
    scrape.add_argument(
        "terms",
        nargs="+",
        help="Search terms, e.g. 'Python Developer' 'Data Engineer'",
    )
    scrape.add_argument(
        "--site",
        dest="sites",
        action="append",
        default=None,
        help=f"Site id; repeatable (default: {', '.join(scrape_config.default_sites)})",
    )
    scrape.add_argument("--location", default=scrape_config.default_location)
    scrape.add_argument("--pages", type=int, default=scrape_config.default_page_limit)
    scrape.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Overall deadline in seconds; partial results are returned when it passes",
    )
    return parser.parse_args(argv)


def run_scrape(args: argparse.Namespace) -> int:
    orchestrator = MultiSiteOrchestrator()
    try:
        jobs = orchestrator.run_sync(
            args.terms,
            sites=args.sites,
            page_limit=args.pages,
            location=args.location,
            timeout_s=args.timeout,
        )
    except ConfigurationError as exc:
        logger.error("Invalid scrape configuration: %s", exc)
        print(f"❌ {exc}", file=sys.stderr)
        return 2

    print(json.dumps([job.to_dict() for job in jobs], indent=2))
    if orchestrator.last_run is not None:
        logger.info("Run metrics: %s", json.dumps(orchestrator.last_run.to_dict(), default=str))
    return 0


def run_server(args: argparse.Namespace) -> int:
    from api.api_server import main as serve

    serve(host=args.host, port=args.port)
    return 0


# ---------------------------------------------------------------------------
# MAIN
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Dispatch the requested command.

    Returns:
        ``0`` on success, ``2`` on invalid configuration, ``1`` on an
        unexpected failure, ``130`` on :exc:`KeyboardInterrupt`.
    """
    args = parse_args(argv)
    try:
        if args.command == "serve":
            return run_server(args)
        return run_scrape(args)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user (KeyboardInterrupt)")
        return 130
    except Exception as exc:
        logger.critical("Unhandled exception in main(): %s", exc, exc_info=True)
        return 1


# ---------------------------------------------------------------------------
# ENTRY POINT
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
