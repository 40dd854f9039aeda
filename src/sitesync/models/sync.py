from __future__ import annotations

from datetime import datetime

from pydantic import Field

from sitesync.models.cache import CamelModel


class PhaseTimings(CamelModel):
    """Wall-clock duration of each run phase, in milliseconds.

    ``metadata`` is reported on stdout only. It is still running when the
    record is written, so it is never serialized, and the persisted ``total``
    ends where the metadata phase begins.
    """

    homepage: int = 0
    link_extraction: int = 0
    change_analysis: int = 0
    changed_pages: int = 0
    assets: int = 0
    save_files: int = 0
    metadata: int = Field(default=0, exclude=True)
    total: int = 0


class SyncRecord(CamelModel):
    """One run, as written to last-sync.json and prepended to sync-history.json."""

    timestamp: datetime
    site_url: str
    pages_scraped: int
    pages_skipped: int
    total_pages: int
    files_written: int
    full_scrape: bool
    timings: PhaseTimings = PhaseTimings()
