from __future__ import annotations

from sitesync.models.cache import AssetCacheEntry, PageCacheEntry, ScrapeCache
from sitesync.models.page import (
    AssetKind,
    AssetRef,
    AssetResult,
    FetchResult,
    PageResult,
)
from sitesync.models.sync import PhaseTimings, SyncRecord

__all__ = [
    # cache
    "PageCacheEntry",
    "AssetCacheEntry",
    "ScrapeCache",
    # sync
    "PhaseTimings",
    "SyncRecord",
    # page
    "AssetKind",
    "AssetRef",
    "AssetResult",
    "FetchResult",
    "PageResult",
]
