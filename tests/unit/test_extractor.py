"""Unit tests for the HTML extractor."""

from __future__ import annotations

from sitesync.extractor import (
    MIN_INLINE_SCRIPT_LENGTH,
    content_hash,
    extract_assets,
    extract_inline_scripts,
    extract_inline_styles,
    extract_links,
)
from sitesync.models.page import AssetRef

PAGE = "https://example.test/docs/intro"


class TestContentHash:
    def test_deterministic(self) -> None:
        assert content_hash(b"<html></html>") == content_hash(b"<html></html>")

    def test_known_digest(self) -> None:
        assert content_hash(b"") == (
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    def test_str_hashed_as_utf8(self) -> None:
        assert content_hash("café") == content_hash("café".encode())


class TestExtractLinks:
    def test_relative_and_absolute_same_origin(self) -> None:
        html = '<a href="/about">A</a><a href="https://example.test/blog/">B</a>'
        assert extract_links(html, PAGE) == [
            "https://example.test/about",
            "https://example.test/blog",
        ]

    def test_relative_to_page_path(self) -> None:
        assert extract_links('<a href="setup">x</a>', PAGE) == ["https://example.test/docs/setup"]

    def test_other_origins_dropped(self) -> None:
        html = (
            '<a href="https://other.test/x">x</a>'
            '<a href="http://example.test/insecure">y</a>'
            '<a href="https://www.example.test/">z</a>'
        )
        assert extract_links(html, PAGE) == []

    def test_skipped_schemes(self) -> None:
        html = (
            '<a href="mailto:hi@example.test">m</a>'
            '<a href="tel:+15550100">t</a>'
            '<a href="javascript:void(0)">j</a>'
            '<a href="">empty</a>'
            '<a href="#top">fragment only</a>'
        )
        assert extract_links(html, PAGE) == []

    def test_query_and_fragment_stripped_and_deduplicated(self) -> None:
        html = '<a href="/a?x=1">1</a><a href="/a#s">2</a><a href=\'/a/\'>3</a>'
        assert extract_links(html, PAGE) == ["https://example.test/a"]

    def test_root_link_keeps_slash(self) -> None:
        assert extract_links('<a href="/">home</a>', PAGE) == ["https://example.test/"]

    def test_link_element_hrefs_are_not_pages(self) -> None:
        html = '<link rel="stylesheet" href="/s.css"><link rel="icon" href="/favicon.ico">'
        assert extract_links(html, PAGE) == []

    def test_attributes_before_href(self) -> None:
        html = '<a class="nav" data-x="1" HREF = "/pricing">p</a>'
        assert extract_links(html, PAGE) == ["https://example.test/pricing"]

    def test_malformed_markup_tolerated(self) -> None:
        html = '<a href="/ok">ok</a><a href="/unterminated><div <<< href=>'
        assert extract_links(html, PAGE) == ["https://example.test/ok"]


class TestExtractAssets:
    def test_stylesheets_and_scripts(self) -> None:
        html = (
            '<link rel="stylesheet" href="/css/site.css">'
            '<link href="theme.css?v=3" rel="stylesheet">'
            '<script src="/js/app.js"></script>'
        )
        assert extract_assets(html, PAGE) == [
            AssetRef(url="https://example.test/css/site.css", kind="css"),
            AssetRef(url="https://example.test/docs/theme.css?v=3", kind="css"),
            AssetRef(url="https://example.test/js/app.js", kind="js"),
        ]

    def test_non_css_link_ignored(self) -> None:
        html = '<link rel="icon" href="/favicon.ico"><link rel="preconnect" href="/fonts">'
        assert extract_assets(html, PAGE) == []

    def test_cross_origin_assets_kept(self) -> None:
        html = '<script src="https://assets.example.cdn/app.js"></script>'
        assert extract_assets(html, PAGE) == [
            AssetRef(url="https://assets.example.cdn/app.js", kind="js")
        ]

    def test_known_cdns_excluded(self) -> None:
        html = (
            '<link rel="stylesheet" href="https://cdnjs.cloudflare.com/x/y.css">'
            '<script src="//code.jquery.com/jquery.min.js"></script>'
            '<script src="https://cdn.jsdelivr.net/npm/z.js"></script>'
            '<script src="https://unpkg.com/w.js"></script>'
        )
        assert extract_assets(html, PAGE) == []

    def test_duplicates_removed(self) -> None:
        html = '<script src="/a.js"></script><script src="/a.js"></script>'
        assert extract_assets(html, PAGE) == [AssetRef(url="https://example.test/a.js", kind="js")]

    def test_data_src_is_not_an_external_script(self) -> None:
        html = '<script data-src="/lazy.js"></script><script defer src="/real.js"></script>'
        assert extract_assets(html, PAGE) == [
            AssetRef(url="https://example.test/real.js", kind="js"),
        ]


class TestInlineBlocks:
    def test_inline_styles_trimmed_and_empty_dropped(self) -> None:
        html = "<style>\n  body { margin: 0 }\n</style><style>   </style><STYLE media=print>p{}</STYLE>"
        assert extract_inline_styles(html) == ["body { margin: 0 }", "p{}"]

    def test_short_inline_scripts_dropped(self) -> None:
        short = "x" * (MIN_INLINE_SCRIPT_LENGTH - 1)
        exact = "y" * MIN_INLINE_SCRIPT_LENGTH
        html = f"<script>{short}</script><script type='module'>  {exact}  </script>"
        assert extract_inline_scripts(html) == [exact]

    def test_external_scripts_not_inline(self) -> None:
        body = "z" * 150
        html = f'<script src="/a.js">{body}</script>'
        assert extract_inline_scripts(html) == []

    def test_data_src_script_is_inline(self) -> None:
        body = "l" * 150
        html = f'<script data-src="lazy.js">{body}</script>'
        assert extract_inline_scripts(html) == [body]

    def test_multiline_script(self) -> None:
        body = "window.config = {\n" + "  key: 'value',\n" * 10 + "};"
        assert extract_inline_scripts(f"<script>\n{body}\n</script>") == [body]

    def test_unclosed_block_yields_nothing(self) -> None:
        assert extract_inline_styles("<style>body{}") == []
        assert extract_inline_scripts("<script>" + "a" * 200) == []
