# interfaces/crawl_strategy.py
"""
Defines the abstract interface every crawling technique implements.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models.article import ContentResult, RawContentItem
from ..models.crawler import ContentSelectors, CrawlerType, Source


class CrawlStrategy(ABC):
    """
    Abstract base class for crawling techniques.

    Callers never need to know which technique is in use: every variant
    lists items for a source and can fetch the body of one item.
    """

    crawler_type: CrawlerType

    @abstractmethod
    async def list_items(self, source: Source) -> List[RawContentItem]:
        """
        Harvest the recent entries of a source.

        Args:
            source (Source): Source whose config is already resolved for this run.

        Returns:
            List[RawContentItem]: Recent, title-normalized items.
        """
        pass

    @abstractmethod
    async def fetch_content(
        self, url: str, hints: Optional[ContentSelectors] = None
    ) -> Optional[ContentResult]:
        """
        Fetch the body preview of one article.

        Args:
            url (str): Article URL.
            hints (Optional[ContentSelectors]): Content selector overrides.

        Returns:
            Optional[ContentResult]: Preview and optional thumbnail, or None.
        """
        pass

    async def close(self) -> None:
        """Release resources held by the strategy."""
        return None
