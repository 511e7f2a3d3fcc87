"""Source kinds: fixed pages, RSS feeds, listing pages and web search queries."""

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urljoin

import feedparser
import yaml
from bs4 import BeautifulSoup
from pydantic import BaseModel, Field, ValidationError

from grants_agent.errors import ConfigurationError, FetchError
from grants_agent.models.raw import RawItem

from .base import BaseSource
from .fetcher import MarkupFetcher
from .search import Freshness, WebSearchClient

logger = logging.getLogger(__name__)

DEFAULT_KEYWORDS = ["grant", "residency", "open call", "artists", "fellowship", "competition"]


async def _fetch_items(
    fetcher: MarkupFetcher, source_name: str, urls: list[str], limit: int
) -> list[RawItem]:
    """Fetch detail pages in order, skipping failures, up to limit items."""
    items: list[RawItem] = []
    for url in urls:
        if len(items) >= limit:
            break
        try:
            html = await fetcher.fetch_article(url)
        except FetchError as e:
            logger.warning("Skipping %s: %s", url, e)
            continue
        items.append(RawItem.from_page(source_name, url, html))
    return items


class InstitutionalSource(BaseSource):
    """A single organisation page."""

    kind = "institutional"

    url: str
    notes: Optional[str] = None

    async def collect(self, fetcher, max_items, search_client=None) -> list[RawItem]:
        html = await fetcher.fetch_article(self.url)
        return [RawItem.from_page(self.source_name, self.url, html)]


class RssSource(BaseSource):
    """Feed entries whose titles match a keyword."""

    kind = "rss"

    feed_url: str
    keyword_filters: list[str] = Field(default_factory=lambda: list(DEFAULT_KEYWORDS))

    def matching_links(self, feed_text: str, limit: int) -> list[str]:
        feed = feedparser.parse(feed_text)
        links: list[str] = []
        for entry in (feed.entries or [])[:limit]:
            link = (getattr(entry, "link", "") or "").strip()
            if not link:
                continue
            title = (getattr(entry, "title", "") or "").lower()
            if self.keyword_filters and not any(k.lower() in title for k in self.keyword_filters):
                continue
            links.append(link)
        return links

    async def collect(self, fetcher, max_items, search_client=None) -> list[RawItem]:
        limit = self.effective_limit(max_items)
        feed_text = await fetcher.fetch(self.feed_url)
        links = self.matching_links(feed_text, limit)
        return await _fetch_items(fetcher, self.source_name, links, limit)


class ListingSource(BaseSource):
    """An index page whose links point at individual opportunities."""

    kind = "listing"

    url: str
    link_selector: str = "article a"
    include_keywords: list[str] = Field(default_factory=list)
    exclude_keywords: list[str] = Field(default_factory=list)
    absolute_base: Optional[str] = None

    def matching_links(self, html: str, limit: int) -> list[str]:
        """Resolved links in page order, filtered by URL slug keywords."""
        links: list[str] = []
        for anchor in BeautifulSoup(html, "lxml").select(self.link_selector)[:limit]:
            href = (anchor.get("href") or "").strip()
            if not href:
                continue
            try:
                absolute = urljoin(self.absolute_base or self.url, href)
            except ValueError:
                continue
            lower = absolute.lower()
            if self.include_keywords and not any(
                k.lower().replace(" ", "-") in lower for k in self.include_keywords
            ):
                continue
            if any(k.lower() in lower for k in self.exclude_keywords):
                continue
            if absolute not in links:
                links.append(absolute)
        return links

    async def collect(self, fetcher, max_items, search_client=None) -> list[RawItem]:
        limit = self.effective_limit(max_items)
        html = await fetcher.fetch(self.url)
        links = self.matching_links(html, limit)
        return await _fetch_items(fetcher, self.source_name, links, limit)


class SearchSource(BaseSource):
    """Web search results for a query, optionally restricted to domains."""

    kind = "search"

    query: str
    domains: list[str] = Field(default_factory=list)
    freshness: Optional[Freshness] = None
    count: int = 5

    async def collect(self, fetcher, max_items, search_client=None) -> list[RawItem]:
        if search_client is None:
            logger.warning("No search client for %s; skipping", self.source_name)
            return []
        results = await search_client.search(
            self.query,
            count=self.count,
            freshness=self.freshness,
            domains=self.domains or None,
        )
        limit = self.effective_limit(max_items)
        return await _fetch_items(fetcher, self.source_name, [r.url for r in results], limit)


class SourcesConfig(BaseModel):
    """Sources file contents, grouped by kind."""

    institutional: list[InstitutionalSource] = Field(default_factory=list)
    rss: list[RssSource] = Field(default_factory=list)
    listing: list[ListingSource] = Field(default_factory=list)
    search: list[SearchSource] = Field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "SourcesConfig":
        try:
            data = yaml.safe_load(Path(path).read_text()) or {}
            return cls.model_validate(data)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            raise ConfigurationError(f"Invalid sources file {path}: {e}") from e

    def all_sources(self) -> list[BaseSource]:
        """Sources in fetch order: institutional, rss, listing, search."""
        return [*self.institutional, *self.rss, *self.listing, *self.search]

    def is_empty(self) -> bool:
        return not self.all_sources()


async def collect_raw_items(
    sources: SourcesConfig,
    fetcher: MarkupFetcher,
    max_items: int,
    search_client: Optional[WebSearchClient] = None,
) -> list[RawItem]:
    """
    Fetch every source in order, dedupe by external_id (first wins) and cap
    at max_items. An unreachable source is logged and skipped.
    """
    seen: dict[str, RawItem] = {}
    for source in sources.all_sources():
        logger.info("Fetching %s source: %s", source.kind, source.source_name)
        try:
            items = await source.collect(fetcher, max_items, search_client)
        except FetchError as e:
            logger.warning("Source %s failed: %s", source.source_name, e)
            continue
        for item in items:
            seen.setdefault(item.external_id, item)
    return list(seen.values())[:max_items]
