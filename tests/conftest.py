"""Shared test fixtures for the sitesync test suite."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from sitesync.config import Settings
from sitesync.errors import ErrorCode, SiteSyncError
from sitesync.models.cache import PageCacheEntry, ScrapeCache
from sitesync.models.page import FetchResult
from sitesync.storage import OutputStore

if TYPE_CHECKING:
    from pathlib import Path

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class StubFetcher:
    """In-memory FetcherProtocol implementation.

    Records every call and tracks how many fetches are in flight at once.
    URLs without a registered response fail like a network error.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.responses: dict[str, FetchResult | SiteSyncError] = {}
        self.last_modified: dict[str, str | None] = {}
        self.calls: list[str] = []
        self.head_calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def add(
        self,
        url: str,
        body: bytes | str = b"",
        *,
        status_code: int = 200,
        headers: dict[str, str] | None = None,
    ) -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.responses[url] = FetchResult(
            url=url,
            final_url=url,
            status_code=status_code,
            headers=headers or {},
            body=body,
        )

    def fail(self, url: str, code: ErrorCode = ErrorCode.FETCH_FAILED) -> None:
        self.responses[url] = SiteSyncError(code=code, message=f"stub failure for {url}")

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
    ) -> FetchResult:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            response = self.responses.get(url)
            if response is None:
                raise SiteSyncError(code=ErrorCode.FETCH_FAILED, message=f"no route for {url}")
            if isinstance(response, SiteSyncError):
                raise response
            return response
        finally:
            self.in_flight -= 1

    async def get_last_modified(self, url: str) -> str | None:
        self.head_calls.append(url)
        return self.last_modified.get(url)


@pytest.fixture()
def stub_fetcher() -> StubFetcher:
    return StubFetcher()


@pytest.fixture()
def store(tmp_path: Path) -> OutputStore:
    output = OutputStore(tmp_path / "output")
    output.ensure_dirs()
    return output


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings for https://example.test writing below tmp_path."""
    return Settings(
        site_url="https://example.test",
        output={"dir": str(tmp_path / "output")},
    )


@pytest.fixture()
def cached_page() -> PageCacheEntry:
    return PageCacheEntry(
        content_hash="0" * 64,
        last_modified="Wed, 21 Oct 2015 07:28:00 GMT",
        captured_at=NOW,
        discovered_links=[],
    )


@pytest.fixture()
def empty_cache() -> ScrapeCache:
    return ScrapeCache()
