# interfaces/source_repository.py

"""
Persistence contracts consumed by the crawler service.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from ..models.article import CrawledArticle
from ..models.crawler import CrawlLog, Source, StrategyResolution


class SourceRepository(ABC):
    """Storage of sources, articles and run logs."""

    @abstractmethod
    async def get_active_sources(self) -> List[Source]:
        """Active sources ordered by priority, highest first."""
        pass

    @abstractmethod
    async def get_source(self, source_id: str) -> Optional[Source]:
        pass

    @abstractmethod
    async def save_resolution(
        self, source_id: str, resolution: StrategyResolution
    ) -> Optional[Source]:
        """Write the discovered technique, selectors and crawl URL onto a source."""
        pass

    @abstractmethod
    async def mark_crawled(self, source_id: str, crawled_at: datetime) -> None:
        pass

    @abstractmethod
    async def save_articles(self, articles: List[CrawledArticle]) -> int:
        """
        Insert articles, skipping identifiers that already exist.

        Returns:
            int: Number of newly stored articles.
        """
        pass

    @abstractmethod
    async def save_crawl_log(self, log: CrawlLog) -> None:
        pass
