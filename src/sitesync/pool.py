"""Batched concurrent fetching of external stylesheets and scripts."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

import structlog

from sitesync.errors import SiteSyncError
from sitesync.models.page import AssetRef, AssetResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sitesync.protocols import FetcherProtocol

log = structlog.get_logger()

ASSET_BATCH_SIZE = 5

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


async def fetch_asset(fetcher: FetcherProtocol, ref: AssetRef) -> AssetResult | None:
    """Fetch one asset. Failures and non-200 responses yield ``None``."""
    try:
        result = await fetcher.fetch(ref.url)
    except SiteSyncError as exc:
        log.warning("asset_fetch_failed", url=ref.url, code=exc.code, error=exc.message)
        return None

    if result.status_code != 200:
        log.warning("asset_fetch_failed", url=ref.url, status_code=result.status_code)
        return None

    return AssetResult(url=ref.url, kind=ref.kind, content=result.body)


async def fetch_assets(
    fetcher: FetcherProtocol,
    refs: Sequence[AssetRef],
    *,
    batch_size: int = ASSET_BATCH_SIZE,
) -> list[AssetResult]:
    """Fetch ``refs`` in sequential batches of ``batch_size`` concurrent requests.

    Returns the successful subset in input order.
    """
    succeeded: list[AssetResult] = []
    for batch in chunked(refs, batch_size):
        results = await asyncio.gather(*(fetch_asset(fetcher, ref) for ref in batch))
        succeeded.extend(result for result in results if result is not None)

    log.info("assets_fetched", requested=len(refs), succeeded=len(succeeded))
    return succeeded
