"""URL canonicalization: cache keys, site URLs, and mirror filenames."""

from __future__ import annotations

import hashlib
import re
from urllib.parse import SplitResult, urljoin, urlsplit

# Third-party libraries served from these hosts are never mirrored
CDN_HOSTS: tuple[str, ...] = (
    "cdnjs.cloudflare.com",
    "unpkg.com",
    "cdn.jsdelivr.net",
    "ajax.googleapis.com",
    "code.jquery.com",
)

_DEFAULT_PORTS = {"http": 80, "https": 443}

_STRIPPED_SUFFIXES: dict[str, tuple[str, ...]] = {
    ".html": (".html", ".htm"),
    ".css": (".css",),
    ".js": (".js",),
}

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def normalize_site_url(raw_url: str) -> str:
    """Normalize the configured site URL.

    ``example.com/`` becomes ``https://example.com``. Only a single trailing
    slash is removed.
    """
    normalized = raw_url.strip()
    if not normalized.startswith("http"):
        normalized = "https://" + normalized
    if normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized


def origin_of(parts: SplitResult) -> str:
    """Return ``scheme://host[:port]`` with the default port omitted.

    Raises ValueError for URLs with an unparseable port.
    """
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if ":" in host:
        host = f"[{host}]"
    port = parts.port
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


def cache_key(url: str, base_url: str | None = None) -> str:
    """Canonicalize a URL into ``origin + path`` without trailing slashes.

    Query and fragment are dropped, the root path becomes ``origin + "/"``.
    Idempotent. Input that cannot be resolved to an absolute URL is returned
    unchanged.
    """
    try:
        absolute = urljoin(base_url, url) if base_url else url
        parts = urlsplit(absolute)
        if not parts.scheme or not parts.netloc:
            return url
        origin = origin_of(parts)
    except ValueError:
        return url

    path = parts.path.rstrip("/")
    return origin + (path or "/")


def same_origin(url: str, other: str) -> bool:
    try:
        return origin_of(urlsplit(url)) == origin_of(urlsplit(other))
    except ValueError:
        return False


def is_cdn_url(url: str) -> bool:
    """True when the URL's host contains one of the known public CDN hosts."""
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return False
    return any(cdn in host for cdn in CDN_HOSTS)


def url_to_filename(url: str, ext: str = ".html") -> str:
    """Derive a flat mirror filename from a URL path.

    ``/blog/Post+1.html`` becomes ``blog-post-1.html``. Distinct paths can
    collapse onto the same name (``/a+b`` and ``/a-b``); the later write wins.
    """
    try:
        name = urlsplit(url).path.strip("/").lower()
    except ValueError:
        return "page-" + hashlib.sha256(url.encode()).hexdigest()[:12] + ext

    for suffix in _STRIPPED_SUFFIXES.get(ext, (ext,)):
        if name.endswith(suffix):
            name = name[: -len(suffix)]
            break

    name = _NON_ALNUM_RE.sub("-", name).strip("-")
    return (name or "index") + ext
