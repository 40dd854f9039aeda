"""Protocol interfaces for swappable components.

The change detector, asset pool, and orchestrator reference these protocols,
not the concrete Fetcher. Tests use lightweight stub transports that count
calls or in-flight requests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from sitesync.models.page import FetchResult


class FetcherProtocol(Protocol):
    """Interface for the HTTP fetcher."""

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
    ) -> FetchResult: ...

    async def get_last_modified(self, url: str) -> str | None: ...
