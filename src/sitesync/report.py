"""Plain-text performance report printed to stdout at the end of a run."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sitesync.sync import SyncReport

_RULE = "-" * 50
_DOUBLE_RULE = "=" * 50

_PHASE_LABELS = (
    ("homepage", "Homepage check"),
    ("link_extraction", "Link extraction"),
    ("change_analysis", "Change analysis"),
    ("changed_pages", "Changed pages"),
    ("assets", "Assets"),
    ("save_files", "Save files"),
    ("metadata", "Metadata"),
)


def _row(label: str, value: object) -> str:
    return f"{label + ':':<20}{value}"


def render_report(report: SyncReport) -> str:
    record = report.record
    timings = record.timings
    lines = [
        _DOUBLE_RULE,
        "INCREMENTAL SYNC COMPLETE" + (" (full rescrape)" if record.full_scrape else ""),
        f"Site: {record.site_url}",
        "",
        "Performance report",
        _RULE,
    ]
    lines.extend(_row(label, f"{getattr(timings, name)}ms") for name, label in _PHASE_LABELS)
    lines.append(_RULE)
    lines.append(_row("TOTAL TIME", f"{timings.total}ms ({timings.total / 1000:.2f}s)"))
    lines.append(_RULE)
    lines.extend(
        [
            _row("Total pages", record.total_pages),
            _row("Changed", record.pages_scraped),
            _row("Skipped", record.pages_skipped),
            _row("Failed", report.pages_failed),
            _row("Assets fetched", report.assets_fetched),
            _row("Inline styles", report.inline_styles),
            _row("Inline scripts", report.inline_scripts),
            _row("Files written", record.files_written),
            _row("Efficiency", f"{report.efficiency}% skipped"),
        ]
    )
    lines.append(_DOUBLE_RULE)
    return "\n".join(lines)
