from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

AssetKind = Literal["css", "js"]


@dataclass(frozen=True)
class FetchResult:
    url: str
    final_url: str
    status_code: int
    headers: dict[str, str]  # Keys lowercased
    body: bytes


@dataclass(frozen=True)
class AssetRef:
    """An external stylesheet or script referenced by a page."""

    url: str
    kind: AssetKind


@dataclass(frozen=True)
class AssetResult:
    url: str
    kind: AssetKind
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class PageResult:
    """A successfully fetched page and everything extracted from it."""

    url: str
    body: bytes
    content_hash: str
    last_modified: str | None
    links: list[str] = field(default_factory=list)
    assets: list[AssetRef] = field(default_factory=list)
    inline_styles: list[str] = field(default_factory=list)
    inline_scripts: list[str] = field(default_factory=list)
