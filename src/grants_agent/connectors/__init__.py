"""Source collaborators: page fetching, web search and source lists."""

from grants_agent.connectors.base import BaseSource
from grants_agent.connectors.fetcher import MarkupFetcher, select_article
from grants_agent.connectors.search import WebSearchClient, WebSearchResult
from grants_agent.connectors.sources import (
    InstitutionalSource,
    ListingSource,
    RssSource,
    SearchSource,
    SourcesConfig,
    collect_raw_items,
)

__all__ = [
    "BaseSource",
    "InstitutionalSource",
    "ListingSource",
    "MarkupFetcher",
    "RssSource",
    "SearchSource",
    "SourcesConfig",
    "WebSearchClient",
    "WebSearchResult",
    "collect_raw_items",
    "select_article",
]
