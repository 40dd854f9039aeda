"""Unit tests for the performance report."""

from __future__ import annotations

from datetime import UTC, datetime

from sitesync.models.sync import PhaseTimings, SyncRecord
from sitesync.report import render_report
from sitesync.sync import SyncReport


def _record(**overrides: object) -> SyncRecord:
    values: dict[str, object] = {
        "timestamp": datetime(2026, 3, 1, tzinfo=UTC),
        "site_url": "https://example.test",
        "pages_scraped": 2,
        "pages_skipped": 1,
        "total_pages": 3,
        "files_written": 5,
        "full_scrape": False,
        "timings": PhaseTimings(homepage=120, change_analysis=45, total=1500),
    }
    values.update(overrides)
    return SyncRecord(**values)


class TestEfficiency:
    def test_rounds_to_whole_percent(self) -> None:
        assert SyncReport(record=_record()).efficiency == 33

    def test_half_rounds_up(self) -> None:
        record = _record(pages_scraped=7, pages_skipped=1, total_pages=8)
        assert SyncReport(record=record).efficiency == 13

    def test_zero_pages(self) -> None:
        record = _record(pages_scraped=0, pages_skipped=0, total_pages=0)
        assert SyncReport(record=record).efficiency == 0

    def test_everything_skipped(self) -> None:
        record = _record(pages_scraped=0, pages_skipped=3)
        assert SyncReport(record=record).efficiency == 100


class TestRender:
    def test_contains_phases_and_totals(self) -> None:
        text = render_report(
            SyncReport(
                record=_record(),
                pages_failed=1,
                assets_fetched=4,
                inline_styles=2,
                inline_scripts=1,
            )
        )
        lines = text.splitlines()
        assert lines[1] == "INCREMENTAL SYNC COMPLETE"
        assert "Site: https://example.test" in lines
        assert "Homepage check:     120ms" in lines
        assert "Change analysis:    45ms" in lines
        assert "TOTAL TIME:         1500ms (1.50s)" in lines
        assert "Failed:             1" in lines
        assert "Assets fetched:     4" in lines
        assert "Files written:      5" in lines
        assert "Efficiency:         33% skipped" in lines

    def test_full_rescrape_banner(self) -> None:
        text = render_report(SyncReport(record=_record(full_scrape=True)))
        assert "INCREMENTAL SYNC COMPLETE (full rescrape)" in text
