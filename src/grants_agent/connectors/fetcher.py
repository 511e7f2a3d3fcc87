"""Markup fetching and article narrowing."""

import logging
from typing import Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from grants_agent.errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; GrantsAgent/0.1; opportunity digest for artists)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}
DEFAULT_TIMEOUT = 30.0

DEFAULT_SELECTOR = "article, main"
DOMAIN_SELECTORS: dict[str, str] = {
    "residencyunlimited.org": "article, main, .post",
    "on-the-move.org": "article, main, .field--name-body",
    "artconnect.com": "article, main, .opportunity-detail",
    "labiennale.org": "article, main, .detail-page",
    "nyfa.org": "article, main, .entry-content",
    "creative-capital.org": "article, main, .post-content",
}


def selector_for(url: str) -> str:
    """Content container selector for the URL's domain."""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return DEFAULT_SELECTOR
    return DOMAIN_SELECTORS.get(host.replace("www.", "", 1), DEFAULT_SELECTOR)


def select_article(html: str, url: str) -> str:
    """Inner HTML of the first content container, or the whole page."""
    node = BeautifulSoup(html, "lxml").select_one(selector_for(url))
    if node is None:
        return html
    inner = node.decode_contents()
    return inner if inner.strip() else html


class MarkupFetcher:
    """
    Async page fetcher.

    Usage:
        async with MarkupFetcher() as fetcher:
            html = await fetcher.fetch_article(url)
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            headers=DEFAULT_HEADERS,
        )

    async def __aenter__(self) -> "MarkupFetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch(self, url: str) -> str:
        """Raw response text. Raises FetchError on HTTP or transport failure."""
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(url, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FetchError(url, str(e) or type(e).__name__) from e
        return response.text

    async def fetch_article(self, url: str) -> str:
        """Fetch and narrow to the domain's content container."""
        html = await self.fetch(url)
        article = select_article(html, url)
        logger.info("Fetched %s (%d chars)", url, len(article))
        return article
