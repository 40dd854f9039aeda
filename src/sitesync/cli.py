"""Command-line entrypoint.

Responsibilities (and nothing more):
- Parse the two flags (--full, --site-url) into Settings overrides
- Configure structlog
- Own the httpx client for the run
- Map the run outcome to an exit code (0 success, 1 any fatal error)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from sitesync import __version__
from sitesync.config import Settings
from sitesync.errors import ErrorCode, SiteSyncError
from sitesync.fetcher import Fetcher, build_http_client
from sitesync.report import render_report
from sitesync.storage import OutputStore
from sitesync.sync import IncrementalSync

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sitesync.sync import SyncReport

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # Logs go to stderr; stdout carries the performance report
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------


async def run_sync(settings: Settings) -> SyncReport:
    """Run one sync with a client scoped to the run."""
    if not settings.site_url.strip():
        raise SiteSyncError(
            code=ErrorCode.INVALID_CONFIG,
            message="No site URL configured. Set SITESYNC__SITE_URL or pass --site-url.",
            recoverable=False,
        )

    store = OutputStore(settings.output.path)
    log.info("output_root", path=str(store.root))
    async with build_http_client(settings.fetcher) as http_client:
        fetcher = Fetcher(http_client, max_redirects=settings.fetcher.max_redirects)
        return await IncrementalSync(settings, fetcher, store).run()


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sitesync",
        description="Incrementally mirror a published website into a local file tree.",
    )
    parser.add_argument(
        "--full", action="store_true", help="re-fetch every page regardless of the cache"
    )
    parser.add_argument("--site-url", help="site to mirror (overrides configuration)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    overrides: dict[str, object] = {}
    if args.full:
        overrides["full_scrape"] = True
    if args.site_url:
        overrides["site_url"] = args.site_url

    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    setup_logging(settings)

    try:
        report = asyncio.run(run_sync(settings))
    except SiteSyncError as exc:
        log.error("sync_failed", code=exc.code, message=exc.message)
        return 1
    except Exception:
        log.error("sync_unexpected_error", exc_info=True)
        return 1

    print(render_report(report))
    return 0


if __name__ == "__main__":
    sys.exit(main())
