"""Output tree and run metadata persistence.

Layout below the output root::

    html/*.html   css/*.css   js/*.js
    metadata/scrape-cache.json
    metadata/last-sync.json
    metadata/sync-history.json

Metadata reads never fail a run: a missing file is a first run, an unreadable
or invalid one is logged and treated as missing. Metadata writes are atomic
(temp file, fsync, os.replace). Mirror files are written in place and a
filename collision between two URLs silently keeps the later write.
"""

from __future__ import annotations

import json
import os
import sys
from contextlib import suppress
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog
from pydantic import TypeAdapter, ValidationError

from sitesync.models.cache import AssetCacheEntry, PageCacheEntry, ScrapeCache
from sitesync.models.sync import SyncRecord
from sitesync.urls import cache_key, url_to_filename

if TYPE_CHECKING:
    from pathlib import Path

    from sitesync.models.page import AssetKind, AssetResult, PageResult

log = structlog.get_logger()

SYNC_HISTORY_MAX = 100

_HISTORY_ADAPTER = TypeAdapter(list[SyncRecord])
_SUBDIRS: dict[AssetKind, str] = {"css": "css", "js": "js"}


class OutputStore:
    """Writes mirror files and metadata below a single output root."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.html_dir = root / "html"
        self.css_dir = root / "css"
        self.js_dir = root / "js"
        self.metadata_dir = root / "metadata"
        self.cache_path = self.metadata_dir / "scrape-cache.json"
        self.last_sync_path = self.metadata_dir / "last-sync.json"
        self.history_path = self.metadata_dir / "sync-history.json"
        self.files_written = 0

    def ensure_dirs(self) -> None:
        for directory in (self.html_dir, self.css_dir, self.js_dir, self.metadata_dir):
            directory.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Mirror files
    # ------------------------------------------------------------------

    def _write(self, path: Path, content: bytes | str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
        self.files_written += 1
        return path

    def write_page(self, page: PageResult) -> Path:
        return self._write(self.html_dir / url_to_filename(page.url, ".html"), page.body)

    def write_asset(self, asset: AssetResult) -> Path:
        directory = self.root / _SUBDIRS[asset.kind]
        return self._write(directory / url_to_filename(asset.url, f".{asset.kind}"), asset.content)

    def write_inline(self, kind: AssetKind, index: int, content: str) -> Path:
        """Write an inline block as ``inline-<index>``; positions are per run."""
        directory = self.root / _SUBDIRS[kind]
        return self._write(directory / f"inline-{index}.{kind}", content)

    def write_results(
        self,
        cache: ScrapeCache,
        pages: list[PageResult],
        assets: list[AssetResult],
        inline_styles: list[str],
        inline_scripts: list[str],
        *,
        now: datetime | None = None,
    ) -> int:
        """Write everything fetched this run and record it in ``cache``.

        Only pages and assets passed in are touched in the cache; entries of
        skipped pages are left as they were. Returns the number of files
        written by this call.
        """
        now = now or datetime.now(UTC)
        before = self.files_written

        for page in pages:
            self.write_page(page)
            cache.pages[cache_key(page.url)] = PageCacheEntry(
                content_hash=page.content_hash,
                last_modified=page.last_modified,
                captured_at=now,
                discovered_links=page.links,
            )

        for asset in assets:
            self.write_asset(asset)
            cache.assets[asset.url] = AssetCacheEntry(captured_at=now, byte_size=asset.size)

        for index, style in enumerate(inline_styles):
            self.write_inline("css", index, style)
        for index, script in enumerate(inline_scripts):
            self.write_inline("js", index, script)

        return self.files_written - before

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def load_cache(self) -> ScrapeCache:
        """Read the scrape cache. Returns an empty cache when missing or invalid."""
        if not self.cache_path.is_file():
            log.info("cache_missing", path=str(self.cache_path))
            return ScrapeCache()
        try:
            cache = ScrapeCache.model_validate_json(self.cache_path.read_bytes())
        except (OSError, ValueError, ValidationError):
            log.warning("cache_invalid", path=str(self.cache_path), exc_info=True)
            return ScrapeCache()
        log.info(
            "cache_loaded",
            path=str(self.cache_path),
            pages=len(cache.pages),
            assets=len(cache.assets),
        )
        return cache

    def save_cache(self, cache: ScrapeCache) -> None:
        _write_json_atomic(self.cache_path, cache.model_dump(mode="json", by_alias=True))

    def save_last_sync(self, record: SyncRecord) -> None:
        _write_json_atomic(self.last_sync_path, record.model_dump(mode="json", by_alias=True))

    def load_history(self) -> list[SyncRecord]:
        """Read sync history, newest first. Missing or invalid history is empty."""
        if not self.history_path.is_file():
            return []
        try:
            return _HISTORY_ADAPTER.validate_json(self.history_path.read_bytes())
        except (OSError, ValueError, ValidationError):
            log.warning("sync_history_invalid", path=str(self.history_path), exc_info=True)
            return []

    def append_history(
        self, record: SyncRecord, max_entries: int = SYNC_HISTORY_MAX
    ) -> list[SyncRecord]:
        """Prepend ``record``, drop the oldest entries beyond ``max_entries``, persist."""
        history = [record, *self.load_history()][:max_entries]
        _write_json_atomic(
            self.history_path, _HISTORY_ADAPTER.dump_python(history, mode="json", by_alias=True)
        )
        return history


def _write_json_atomic(path: Path, payload: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    data = json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        _write_bytes_fsync(tmp_path, data)
        os.replace(tmp_path, path)
        _fsync_directory(path.parent)
    finally:
        with suppress(OSError):
            tmp_path.unlink(missing_ok=True)


def _write_bytes_fsync(path: Path, data: bytes) -> None:
    with path.open("wb") as file_obj:
        file_obj.write(data)
        file_obj.flush()
        os.fsync(file_obj.fileno())


def _fsync_directory(path: Path) -> None:
    if sys.platform == "win32":
        return  # Windows does not support fsync on directory handles
    directory_fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(directory_fd)
    finally:
        os.close(directory_fd)
