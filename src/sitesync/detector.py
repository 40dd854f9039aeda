"""Staleness decisions for candidate pages.

Rules, first match wins:
  1. full rescrape requested       -> fetch
  2. no cache entry                -> fetch
  3. entry older than max_age      -> fetch
  4. HEAD Last-Modified != cached  -> fetch, otherwise skip

The stored content hash is provenance only; it never triggers a fetch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from sitesync.urls import cache_key

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from sitesync.models.cache import ScrapeCache
    from sitesync.protocols import FetcherProtocol

log = structlog.get_logger()

FRESHNESS_CEILING = timedelta(hours=24)


class Reason(StrEnum):
    FULL_SCRAPE = "full_scrape"
    NOT_CACHED = "not_cached"
    EXPIRED = "expired"
    LAST_MODIFIED_CHANGED = "last_modified_changed"
    UNCHANGED = "unchanged"


@dataclass
class ChangeAnalysis:
    """Outcome of running the detector over a discovered link set."""

    to_fetch: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    reasons: dict[str, Reason] = field(default_factory=dict)


class ChangeDetector:
    """Decides which pages must be re-fetched this run.

    The cache is owned by the orchestrator and only read here.
    """

    def __init__(
        self,
        cache: ScrapeCache,
        fetcher: FetcherProtocol,
        *,
        full_scrape: bool = False,
        max_age: timedelta = FRESHNESS_CEILING,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._cache = cache
        self._fetcher = fetcher
        self._full_scrape = full_scrape
        self._max_age = max_age
        self._clock = clock or (lambda: datetime.now(UTC))

    async def check(self, url: str) -> Reason:
        """Classify a single URL. Only rule 4 touches the network."""
        if self._full_scrape:
            return Reason.FULL_SCRAPE

        entry = self._cache.pages.get(cache_key(url))
        if entry is None:
            return Reason.NOT_CACHED

        if self._clock() - entry.captured_at > self._max_age:
            return Reason.EXPIRED

        last_modified = await self._fetcher.get_last_modified(url)
        if last_modified != entry.last_modified:
            return Reason.LAST_MODIFIED_CHANGED
        return Reason.UNCHANGED

    async def pages_to_fetch(self, urls: Iterable[str]) -> ChangeAnalysis:
        """Run :meth:`check` over ``urls`` sequentially, preserving order."""
        analysis = ChangeAnalysis()
        for url in urls:
            reason = await self.check(url)
            analysis.reasons[url] = reason
            if reason is Reason.UNCHANGED:
                analysis.skipped.append(url)
            else:
                analysis.to_fetch.append(url)
            log.debug("change_check", url=url, reason=reason)

        log.info(
            "change_analysis_complete",
            to_fetch=len(analysis.to_fetch),
            skipped=len(analysis.skipped),
        )
        return analysis
