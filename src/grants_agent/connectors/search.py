"""Web search provider (Bing-compatible JSON API)."""

import logging
from dataclasses import dataclass
from typing import Literal, Optional

import httpx

logger = logging.getLogger(__name__)

Freshness = Literal["Day", "Week", "Month"]


@dataclass
class WebSearchResult:
    name: str
    url: str
    snippet: Optional[str] = None


class WebSearchClient:
    """Returns [] when unconfigured or on any provider error."""

    def __init__(
        self,
        endpoint: str,
        api_key: Optional[str],
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.endpoint = endpoint
        self.api_key = api_key
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def search(
        self,
        query: str,
        *,
        count: int = 5,
        freshness: Optional[Freshness] = None,
        domains: Optional[list[str]] = None,
    ) -> list[WebSearchResult]:
        if not self.api_key:
            logger.warning("SEARCH_API_KEY not configured. Skipping web search.")
            return []

        params = {
            "q": query,
            "count": str(count),
            "responseFilter": "Webpages",
            "textDecorations": "false",
            "textFormat": "Raw",
            "safeSearch": "Moderate",
        }
        if freshness:
            params["freshness"] = freshness
        if domains:
            params["sites"] = ",".join(domains)

        try:
            resp = await self._client.get(
                self.endpoint,
                params=params,
                headers={
                    "Content-Type": "application/json",
                    "Ocp-Apim-Subscription-Key": self.api_key,
                },
            )
        except httpx.HTTPError as e:
            logger.warning("Search request failed: %s", e)
            return []
        if resp.is_error:
            logger.warning("Search API error %d: %s", resp.status_code, resp.reason_phrase)
            return []

        try:
            data = resp.json()
        except ValueError:
            logger.warning("Search API returned non-JSON body")
            return []
        pages = ((data or {}).get("webPages") or {}).get("value") or []
        return [
            WebSearchResult(name=p.get("name", ""), url=p["url"], snippet=p.get("snippet") or None)
            for p in pages
            if p.get("url")
        ]
