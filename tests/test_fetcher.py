"""Tests for MarkupFetcher, article selection and WebSearchClient."""

import httpx
import pytest

from grants_agent.connectors import MarkupFetcher, WebSearchClient, select_article
from grants_agent.connectors.fetcher import DEFAULT_SELECTOR, selector_for
from grants_agent.errors import FetchError

PAGE = """<html><body>
<nav>Menu</nav>
<article><h1>Open Call</h1><p>Details.</p></article>
<footer>Footer</footer>
</body></html>"""


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestSelectArticle:
    """Tests for selector_for and select_article."""

    def test_domain_selector(self) -> None:
        assert ".post" in selector_for("https://www.residencyunlimited.org/residencies/x")
        assert selector_for("https://unknown.example/x") == DEFAULT_SELECTOR

    def test_article_inner_html(self) -> None:
        article = select_article(PAGE, "https://unknown.example/x")
        assert "<h1>Open Call</h1>" in article
        assert "Menu" not in article

    def test_whole_page_without_container(self) -> None:
        html = "<html><body><div>No article</div></body></html>"
        assert select_article(html, "https://unknown.example/x") == html


class TestMarkupFetcher:
    """Tests for MarkupFetcher."""

    @pytest.mark.asyncio
    async def test_fetch_article(self) -> None:
        async with MarkupFetcher(client=_client(lambda r: httpx.Response(200, text=PAGE))) as fetcher:
            article = await fetcher.fetch_article("https://unknown.example/x")
        assert "Details." in article
        assert "Footer" not in article

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        fetcher = MarkupFetcher(client=_client(lambda r: httpx.Response(404)))
        with pytest.raises(FetchError, match="HTTP 404"):
            await fetcher.fetch("https://unknown.example/missing")

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        fetcher = MarkupFetcher(client=_client(handler))
        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch("https://slow.example/")
        assert exc_info.value.url == "https://slow.example/"


class TestWebSearchClient:
    """Tests for WebSearchClient."""

    @pytest.mark.asyncio
    async def test_no_key_returns_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        client = WebSearchClient("https://search.example/v7.0/search", None, client=_client(handler))
        assert await client.search("artist residency") == []

    @pytest.mark.asyncio
    async def test_parses_results(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "webPages": {
                        "value": [
                            {"name": "Residency", "url": "https://x.org/r", "snippet": "Apply now"},
                            {"name": "No url"},
                        ]
                    }
                },
            )

        client = WebSearchClient("https://search.example/v7.0/search", "key", client=_client(handler))
        results = await client.search("residency", count=3, freshness="Week", domains=["x.org"])

        assert [r.url for r in results] == ["https://x.org/r"]
        assert results[0].snippet == "Apply now"
        params = seen[0].url.params
        assert params["count"] == "3"
        assert params["freshness"] == "Week"
        assert params["sites"] == "x.org"
        assert seen[0].headers["Ocp-Apim-Subscription-Key"] == "key"

    @pytest.mark.asyncio
    async def test_provider_error_returns_empty(self) -> None:
        client = WebSearchClient(
            "https://search.example/v7.0/search",
            "key",
            client=_client(lambda r: httpx.Response(500)),
        )
        assert await client.search("residency") == []
