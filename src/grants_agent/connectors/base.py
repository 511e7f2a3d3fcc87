"""Abstract base class for opportunity sources."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar, Optional

from pydantic import BaseModel

from grants_agent.models.raw import RawItem

if TYPE_CHECKING:
    from grants_agent.connectors.fetcher import MarkupFetcher
    from grants_agent.connectors.search import WebSearchClient


class BaseSource(BaseModel, ABC):
    """
    Standard interface for opportunity sources.
    Each source yields RawItems for the pages it points at.
    """

    kind: ClassVar[str] = ""

    source_name: str
    limit: Optional[int] = None

    @abstractmethod
    async def collect(
        self,
        fetcher: "MarkupFetcher",
        max_items: int,
        search_client: Optional["WebSearchClient"] = None,
    ) -> list[RawItem]:
        """
        Fetch this source's pages. Raises FetchError when the source itself
        is unreachable; individual detail pages that fail are skipped.
        """

    def effective_limit(self, max_items: int) -> int:
        return min(self.limit, max_items) if self.limit else max_items
