"""Run orchestrator for one incremental sync.

Phases, strictly in order:
  1. homepage     resolve the seed page (HEAD check against cached links)
  2. links        seed + homepage links, deduplicated by cache key
  3. analysis     ChangeDetector builds the work list
  4. pages        fetch work list one page at a time, in discovery order
  5. assets       fetch external assets of fetched pages in batches
  6. save         write mirror files and update the in-memory cache
  7. metadata     persist cache, last-sync record, and history

A failure to obtain the homepage aborts the run. Any other page or asset
failure is logged and leaves that item out of this run's results.
"""

from __future__ import annotations

import math
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import structlog

from sitesync.detector import ChangeDetector
from sitesync.errors import ErrorCode, SiteSyncError
from sitesync.extractor import (
    content_hash,
    extract_assets,
    extract_inline_scripts,
    extract_inline_styles,
    extract_links,
)
from sitesync.models.page import AssetRef, PageResult
from sitesync.models.sync import PhaseTimings, SyncRecord
from sitesync.pool import fetch_assets
from sitesync.urls import cache_key, normalize_site_url, same_origin

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sitesync.config import Settings
    from sitesync.models.cache import ScrapeCache
    from sitesync.protocols import FetcherProtocol
    from sitesync.storage import OutputStore

log = structlog.get_logger()


async def fetch_page(fetcher: FetcherProtocol, url: str) -> PageResult:
    """GET a page and run every extractor over it.

    Raises SiteSyncError for network failures and any status other than 200.
    """
    result = await fetcher.fetch(url)
    if result.status_code != 200:
        raise SiteSyncError(
            code=ErrorCode.HTTP_STATUS,
            message=f"HTTP {result.status_code} for {url}",
        )

    html = result.body.decode("utf-8", errors="replace")
    return PageResult(
        url=url,
        body=result.body,
        content_hash=content_hash(result.body),
        last_modified=result.headers.get("last-modified"),
        links=extract_links(html, url),
        assets=extract_assets(html, url),
        inline_styles=extract_inline_styles(html),
        inline_scripts=extract_inline_scripts(html),
    )


@dataclass
class SyncReport:
    """Everything cli.py needs to print the performance report."""

    record: SyncRecord
    pages_failed: int = 0
    assets_fetched: int = 0
    inline_styles: int = 0
    inline_scripts: int = 0

    @property
    def efficiency(self) -> int:
        """Share of considered pages that were skipped, as a whole percentage.

        Halves round up: 1 skipped of 8 is 13.
        """
        total = self.record.total_pages
        if total == 0:
            return 0
        return math.floor(self.record.pages_skipped * 100 / total + 0.5)


class _Stopwatch:
    def __init__(self) -> None:
        self.timings: dict[str, int] = {}

    @contextmanager
    def phase(self, name: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self.timings[name] = _elapsed_ms(start)


def _elapsed_ms(start: float) -> int:
    return round((time.perf_counter() - start) * 1000)


class IncrementalSync:
    """Owns the cache for one run and drives every other component."""

    def __init__(
        self,
        settings: Settings,
        fetcher: FetcherProtocol,
        store: OutputStore,
    ) -> None:
        self.settings = settings
        self.site_url = normalize_site_url(settings.site_url)
        self.full_scrape = settings.full_scrape
        self._fetcher = fetcher
        self._store = store
        self._log = log.bind(site_url=self.site_url)

    async def run(self) -> SyncReport:
        started = time.perf_counter()
        watch = _Stopwatch()
        self._log.info("sync_starting", full_scrape=self.full_scrape)

        cache = self._store.load_cache()
        self._store.ensure_dirs()

        with watch.phase("homepage"):
            homepage, homepage_links = await self._resolve_homepage(cache)

        with watch.phase("link_extraction"):
            all_links = self._build_link_set(homepage_links)
        self._log.info("links_discovered", total=len(all_links))

        detector = ChangeDetector(
            cache,
            self._fetcher,
            full_scrape=self.full_scrape,
            max_age=timedelta(hours=self.settings.cache.max_age_hours),
        )
        with watch.phase("change_analysis"):
            analysis = await detector.pages_to_fetch(all_links)

        with watch.phase("changed_pages"):
            pages = await self._fetch_pages(analysis.to_fetch, homepage)
        pages_failed = len(analysis.to_fetch) - len(pages)

        asset_refs: dict[AssetRef, None] = {}
        inline_styles: list[str] = []
        inline_scripts: list[str] = []
        for page in pages:
            asset_refs.update(dict.fromkeys(page.assets))
            inline_styles.extend(page.inline_styles)
            inline_scripts.extend(page.inline_scripts)

        with watch.phase("assets"):
            assets = await fetch_assets(
                self._fetcher,
                list(asset_refs),
                batch_size=self.settings.fetcher.asset_concurrency,
            )

        with watch.phase("save_files"):
            files_written = self._store.write_results(
                cache, pages, assets, inline_styles, inline_scripts
            )

        record = SyncRecord(
            timestamp=datetime.now(UTC),
            site_url=self.site_url,
            pages_scraped=len(analysis.to_fetch),
            pages_skipped=len(all_links) - len(analysis.to_fetch),
            total_pages=len(all_links),
            files_written=files_written,
            full_scrape=self.full_scrape,
        )
        # The persisted total runs up to the metadata phase, which cannot time itself
        record.timings = PhaseTimings(**watch.timings, total=_elapsed_ms(started))
        with watch.phase("metadata"):
            self._persist_metadata(cache, record)

        record.timings = PhaseTimings(**watch.timings, total=_elapsed_ms(started))

        report = SyncReport(
            record=record,
            pages_failed=pages_failed,
            assets_fetched=len(assets),
            inline_styles=len(inline_styles),
            inline_scripts=len(inline_scripts),
        )
        self._log.info(
            "sync_complete",
            pages_scraped=record.pages_scraped,
            pages_skipped=record.pages_skipped,
            pages_failed=pages_failed,
            files_written=files_written,
            efficiency=report.efficiency,
        )
        return report

    async def _resolve_homepage(
        self, cache: ScrapeCache
    ) -> tuple[PageResult | None, list[str]]:
        """Return the fetched homepage (if fetched) and its same-origin links.

        With cached links and an unchanged Last-Modified the homepage is not
        downloaded and the cached links are used instead.
        """
        cached = None if self.full_scrape else cache.pages.get(cache_key(self.site_url))
        if cached is not None and cached.discovered_links:
            last_modified = await self._fetcher.get_last_modified(self.site_url)
            if last_modified == cached.last_modified:
                self._log.info("homepage_unchanged", links=len(cached.discovered_links))
                return None, list(cached.discovered_links)

        try:
            homepage = await fetch_page(self._fetcher, self.site_url)
        except SiteSyncError as exc:
            raise SiteSyncError(
                code=ErrorCode.HOMEPAGE_UNREACHABLE,
                message=f"Failed to fetch homepage {self.site_url}: {exc.message}",
                recoverable=False,
            ) from exc

        self._log.info("homepage_fetched", links=len(homepage.links))
        return homepage, homepage.links

    def _build_link_set(self, homepage_links: list[str]) -> list[str]:
        links: dict[str, str] = {cache_key(self.site_url): self.site_url}
        for link in homepage_links:
            if same_origin(link, self.site_url):
                links.setdefault(cache_key(link), link)
        return list(links.values())

    async def _fetch_pages(
        self, urls: list[str], homepage: PageResult | None
    ) -> list[PageResult]:
        homepage_key = cache_key(self.site_url)
        pages: list[PageResult] = []
        for url in urls:
            if homepage is not None and cache_key(url) == homepage_key:
                pages.append(homepage)
                continue
            try:
                pages.append(await fetch_page(self._fetcher, url))
            except SiteSyncError as exc:
                self._log.warning(
                    "page_fetch_failed", url=url, code=exc.code, error=exc.message
                )
        self._log.info("pages_fetched", fetched=len(pages), requested=len(urls))
        return pages

    def _persist_metadata(self, cache: ScrapeCache, record: SyncRecord) -> None:
        self._store.save_cache(cache)
        self._store.save_last_sync(record)
        self._store.append_history(record, max_entries=self.settings.cache.history_max)
