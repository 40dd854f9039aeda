"""Pattern-based extraction of links, assets, and inline blocks from HTML.

Works on raw markup with regular expressions rather than a DOM parse.
Malformed markup simply fails to match; nothing in this module raises on
bad input.
"""

from __future__ import annotations

import hashlib
import re
from urllib.parse import urljoin, urlsplit

from sitesync.models.page import AssetRef
from sitesync.urls import cache_key, is_cdn_url, origin_of

MIN_INLINE_SCRIPT_LENGTH = 100

_SKIPPED_SCHEMES = ("mailto:", "tel:", "javascript:")

# href on any element except <link>, whose hrefs are resources, not pages
_HREF_RE = re.compile(r"""<(?!link\b)[a-z][^>]*?\bhref\s*=\s*["']([^"']+)["']""", re.IGNORECASE)
_STYLESHEET_RE = re.compile(
    r"""<link\b[^>]*?\bhref\s*=\s*["']([^"']+\.css(?:\?[^"']*)?)["'][^>]*>""",
    re.IGNORECASE,
)
_SCRIPT_SRC_RE = re.compile(
    r"""<script\b[^>]*?(?<![\w-])src\s*=\s*["']([^"']+)["'][^>]*>""", re.IGNORECASE
)
_STYLE_BLOCK_RE = re.compile(r"<style\b[^>]*>(.*?)</style>", re.IGNORECASE | re.DOTALL)
_SCRIPT_BLOCK_RE = re.compile(
    r"<script\b([^>]*)>(.*?)</script>", re.IGNORECASE | re.DOTALL
)
_SRC_ATTR_RE = re.compile(r"(?<![\w-])src\s*=", re.IGNORECASE)


def content_hash(content: bytes | str) -> str:
    """SHA-256 hex digest of page content."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


def extract_links(html: str, page_url: str) -> list[str]:
    """Return same-origin page links as deduplicated cache keys, in document order."""
    try:
        page_origin = origin_of(urlsplit(page_url))
    except ValueError:
        return []

    links: dict[str, None] = {}
    for match in _HREF_RE.finditer(html):
        href = match.group(1).split("#")[0].split("?")[0].strip()
        if not href or href.lower().startswith(_SKIPPED_SCHEMES):
            continue
        try:
            resolved = urljoin(page_url, href)
            if origin_of(urlsplit(resolved)) != page_origin:
                continue
        except ValueError:
            continue
        links[cache_key(resolved)] = None

    return list(links)


def _resolve_all(values: list[str], page_url: str) -> list[str]:
    resolved: list[str] = []
    for value in values:
        try:
            url = urljoin(page_url, value.strip())
        except ValueError:
            continue
        if not is_cdn_url(url):
            resolved.append(url)
    return resolved


def extract_assets(html: str, page_url: str) -> list[AssetRef]:
    """Return external stylesheets then scripts, CDN-hosted ones excluded."""
    stylesheets = _resolve_all(_STYLESHEET_RE.findall(html), page_url)
    scripts = _resolve_all(_SCRIPT_SRC_RE.findall(html), page_url)

    refs = [AssetRef(url=url, kind="css") for url in stylesheets]
    refs.extend(AssetRef(url=url, kind="js") for url in scripts)
    return list(dict.fromkeys(refs))


def extract_inline_styles(html: str) -> list[str]:
    styles = (block.strip() for block in _STYLE_BLOCK_RE.findall(html))
    return [style for style in styles if style]


def extract_inline_scripts(html: str) -> list[str]:
    """Return inline script bodies of at least MIN_INLINE_SCRIPT_LENGTH characters.

    Short snippets (analytics bootstraps and the like) are dropped, as are
    blocks on <script> tags that carry a src attribute.
    """
    scripts: list[str] = []
    for attrs, body in _SCRIPT_BLOCK_RE.findall(html):
        if _SRC_ATTR_RE.search(attrs):
            continue
        body = body.strip()
        if len(body) >= MIN_INLINE_SCRIPT_LENGTH:
            scripts.append(body)
    return scripts
