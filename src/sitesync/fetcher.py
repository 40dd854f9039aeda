"""HTTP fetcher with bounded manual redirect handling.

All network I/O of a run goes through a single Fetcher instance. The Fetcher
receives an httpx.AsyncClient via constructor injection; cli.py owns the
client lifecycle.
"""

from __future__ import annotations

from urllib.parse import urljoin

import httpx
import structlog

from sitesync.config import FetcherSettings
from sitesync.errors import ErrorCode, SiteSyncError
from sitesync.models.page import FetchResult

log = structlog.get_logger()

ACCEPT_HEADER = "text/html,application/xhtml+xml,*/*;q=0.9"
DEFAULT_MAX_REDIRECTS = 10


def build_http_client(settings: FetcherSettings | None = None) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once per run."""
    settings = settings or FetcherSettings()
    return httpx.AsyncClient(
        follow_redirects=False,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": settings.user_agent, "Accept": ACCEPT_HEADER},
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


def _is_redirect(response: httpx.Response) -> bool:
    return 300 <= response.status_code < 400 and "location" in response.headers


class Fetcher:
    """Single-request fetcher used for both page GETs and HEAD probes."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
    ) -> None:
        self._client = client
        self._max_redirects = max_redirects

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
    ) -> FetchResult:
        """Fetch a URL, following up to ``max_redirects`` redirects.

        Any final status is returned to the caller, non-2xx included. Raises
        SiteSyncError on network errors, timeouts, and redirect chains that
        exceed the hop limit.
        """
        current_url = url

        try:
            for hop in range(self._max_redirects + 1):
                response = await self._client.request(method, current_url, headers=headers)

                if _is_redirect(response):
                    if hop == self._max_redirects:
                        raise SiteSyncError(
                            code=ErrorCode.TOO_MANY_REDIRECTS,
                            message=(
                                f"More than {self._max_redirects} redirects fetching {url}"
                            ),
                        )
                    current_url = urljoin(current_url, response.headers["location"])
                    continue

                log.debug(
                    "fetch_complete",
                    url=url,
                    method=method,
                    status_code=response.status_code,
                    final_url=current_url,
                    content_length=len(response.content),
                )
                return FetchResult(
                    url=url,
                    final_url=current_url,
                    status_code=response.status_code,
                    headers={k.lower(): v for k, v in response.headers.items()},
                    body=response.content,
                )

        except SiteSyncError:
            raise
        except httpx.TimeoutException as exc:
            raise SiteSyncError(
                code=ErrorCode.FETCH_TIMEOUT,
                message=f"Request timeout fetching {url}",
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise SiteSyncError(
                code=ErrorCode.FETCH_FAILED,
                message=f"Network error fetching {url}: {exc}",
            ) from exc

        # Unreachable but satisfies the type checker
        raise SiteSyncError(code=ErrorCode.TOO_MANY_REDIRECTS, message="Redirect loop")

    async def get_last_modified(self, url: str) -> str | None:
        """HEAD the URL and return its Last-Modified header.

        Any failure degrades to ``None`` ("not known").
        """
        try:
            result = await self.fetch(url, method="HEAD")
        except SiteSyncError as exc:
            log.debug("head_probe_failed", url=url, code=exc.code, error=exc.message)
            return None
        return result.headers.get("last-modified")
