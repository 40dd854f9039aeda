from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    FETCH_FAILED = "FETCH_FAILED"
    FETCH_TIMEOUT = "FETCH_TIMEOUT"
    TOO_MANY_REDIRECTS = "TOO_MANY_REDIRECTS"
    HTTP_STATUS = "HTTP_STATUS"
    HOMEPAGE_UNREACHABLE = "HOMEPAGE_UNREACHABLE"
    INVALID_CONFIG = "INVALID_CONFIG"


class SiteSyncError(Exception):
    """Raised for every expected failure condition of a sync run.

    ``recoverable=True`` marks per-item failures (one page or asset) that the
    orchestrator logs and skips. ``recoverable=False`` aborts the run and is
    turned into a non-zero exit code by cli.py.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable
