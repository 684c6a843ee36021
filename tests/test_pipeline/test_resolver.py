from __future__ import annotations

import pytest
import respx
import httpx

from veritas.config import Settings
from veritas.models.schemas import AnalysisMode
from veritas.pipeline.resolver import (
    NO_CONTENT,
    fetch_page_text,
    html_to_text,
    looks_like_url,
    resolve,
)


class TestLooksLikeUrl:
    def test_http_and_https(self):
        assert looks_like_url("http://example.com") is True
        assert looks_like_url("https://example.com/news/article?id=1") is True
        assert looks_like_url("  HTTPS://Example.com/path  ") is True

    def test_rejects_non_urls(self):
        assert looks_like_url("") is False
        assert looks_like_url("   ") is False
        assert looks_like_url("not-a-url and not http") is False
        assert looks_like_url("example.com/page") is False
        assert looks_like_url("ftp://example.com/file") is False
        assert looks_like_url("mailto:someone@example.com") is False
        assert looks_like_url("https://") is False
        assert looks_like_url("https://example.com is fake news") is False


class TestHtmlToText:
    def test_strips_script_and_style_blocks(self):
        html = """
        <html>
        <head><STYLE type="text/css">body { color: red; }</STYLE></head>
        <body>
            <Script>alert('hi');</sCRIPT>
            <p>Visible text</p>
            <p>More   text</p>
        </body>
        </html>
        """
        text = html_to_text(html)
        assert text == "Visible text More text"

    def test_decodes_entities(self):
        assert html_to_text("<p>Fish &amp; chips &lt;3 &quot;yum&quot;</p>") == 'Fish & chips <3 "yum"'

    def test_collapses_whitespace(self):
        assert html_to_text("<div>a\n\n\t b</div>\n<span>c</span>") == "a b c"

    def test_empty_html(self):
        assert html_to_text("") == ""
        assert html_to_text("<script>only()</script>") == ""

    def test_truncates_with_ellipsis(self):
        text = html_to_text("<p>" + "A" * 50 + "</p>", max_chars=10)
        assert text == "A" * 10 + "…"

    def test_short_text_not_marked(self):
        assert html_to_text("<p>short</p>", max_chars=10) == "short"


class TestFetchPageText:
    @pytest.mark.asyncio
    @respx.mock
    async def test_fetches_html_page(self, http_client):
        respx.get("https://example.com/story").mock(
            return_value=httpx.Response(
                200,
                text="<html><body><p>Breaking story details</p></body></html>",
                headers={"content-type": "text/html; charset=utf-8"},
            )
        )

        result = await fetch_page_text("https://example.com/story", http_client)
        assert result == "Breaking story details"

    @pytest.mark.asyncio
    @respx.mock
    async def test_returns_none_on_error_status(self, http_client):
        respx.get("https://example.com/404").mock(return_value=httpx.Response(404))

        assert await fetch_page_text("https://example.com/404", http_client) is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_returns_none_on_timeout(self, http_client):
        respx.get("https://example.com/slow").mock(side_effect=httpx.ConnectTimeout("Timed out"))

        assert await fetch_page_text("https://example.com/slow", http_client) is None


class TestResolve:
    @pytest.mark.asyncio
    async def test_empty_input(self, http_client, settings):
        content = await resolve(AnalysisMode.AUTO, "   ", http_client, settings)
        assert content.text == NO_CONTENT
        assert content.source_url is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_text_mode_passes_through_trimmed(self, http_client, settings):
        route = respx.route().mock(return_value=httpx.Response(200))

        content = await resolve(AnalysisMode.TEXT, "  The moon is made of cheese.  ", http_client, settings)

        assert content.text == "The moon is made of cheese."
        assert content.source_url is None
        assert not route.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_text_mode_does_not_fetch_urls(self, http_client, settings):
        route = respx.route().mock(return_value=httpx.Response(200))

        content = await resolve(AnalysisMode.TEXT, "https://example.com", http_client, settings)

        assert content.text == "https://example.com"
        assert not route.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_auto_mode_non_url_is_text(self, http_client, settings):
        route = respx.route().mock(return_value=httpx.Response(200))

        content = await resolve(AnalysisMode.AUTO, "not-a-url and not http", http_client, settings)

        assert content.text == "not-a-url and not http"
        assert not route.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_auto_mode_url_is_fetched(self, http_client, settings):
        route = respx.get("https://news.example.com/a").mock(
            return_value=httpx.Response(200, text="<h1>Headline</h1><p>Body &amp; more</p>")
        )

        content = await resolve(AnalysisMode.AUTO, "https://news.example.com/a", http_client, settings)

        assert route.called
        assert content.fetched is True
        assert content.source_url == "https://news.example.com/a"
        assert content.text == (
            "Source URL: https://news.example.com/a\n\nExtracted page text:\nHeadline Body & more"
        )

    @pytest.mark.asyncio
    @respx.mock
    async def test_link_fetch_failure_falls_back_to_url(self, http_client, settings):
        respx.get("https://news.example.com/down").mock(side_effect=httpx.ConnectError("refused"))

        content = await resolve(AnalysisMode.LINK, "https://news.example.com/down", http_client, settings)

        assert content.fetched is False
        assert content.text == "Source URL (failed to fetch): https://news.example.com/down"

    @pytest.mark.asyncio
    @respx.mock
    async def test_link_with_empty_page_falls_back(self, http_client, settings):
        respx.get("https://news.example.com/blank").mock(
            return_value=httpx.Response(200, text="<script>var x = 1;</script>")
        )

        content = await resolve(AnalysisMode.LINK, "https://news.example.com/blank", http_client, settings)

        assert content.text == "Source URL (failed to fetch): https://news.example.com/blank"

    @pytest.mark.asyncio
    async def test_link_mode_with_invalid_url_falls_back(self, http_client, settings):
        content = await resolve(AnalysisMode.LINK, "just some words", http_client, settings)
        assert content.text == "Source URL (failed to fetch): just some words"

    @pytest.mark.asyncio
    @respx.mock
    async def test_content_cap_is_configurable(self, http_client):
        settings = Settings(openrouter_api_key="test-key", max_content_chars=20)
        respx.get("https://news.example.com/long").mock(
            return_value=httpx.Response(200, text="<p>" + "word " * 100 + "</p>")
        )

        content = await resolve(AnalysisMode.LINK, "https://news.example.com/long", http_client, settings)

        page_text = content.text.split("Extracted page text:\n", 1)[1]
        assert len(page_text) == 21
        assert page_text.endswith("…")
