from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for models persisted as JSON with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _assume_utc(value: datetime) -> datetime:
    # Hand-edited metadata may carry naive timestamps
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class PageCacheEntry(CamelModel):
    """What was known about a page the last time it was fetched."""

    content_hash: str  # SHA-256 hex of the raw HTML bytes
    last_modified: str | None = None  # Raw Last-Modified header value
    captured_at: datetime
    discovered_links: list[str] = []  # Same-origin links found on the page

    @field_validator("captured_at")
    @classmethod
    def validate_captured_at(cls, v: datetime) -> datetime:
        return _assume_utc(v)


class AssetCacheEntry(CamelModel):
    """Informational record of an external asset written to the mirror."""

    captured_at: datetime
    byte_size: int

    @field_validator("captured_at")
    @classmethod
    def validate_captured_at(cls, v: datetime) -> datetime:
        return _assume_utc(v)


class ScrapeCache(CamelModel):
    """Persisted run-to-run state, stored as metadata/scrape-cache.json.

    ``pages`` is keyed by cache key (origin + path), ``assets`` by the raw
    absolute asset URL.
    """

    pages: dict[str, PageCacheEntry] = {}
    assets: dict[str, AssetCacheEntry] = {}
