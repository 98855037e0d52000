# adapters/base_strategy.py

"""
Shared mechanics for crawling techniques: HTTP client ownership, title
normalization, recency filtering and the default content fetch.
"""

import asyncio
from typing import Iterable, List, Optional

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..core.config import settings
from ..core.exceptions import CrawlerError
from ..interfaces.crawl_strategy import CrawlStrategy
from ..models.article import ContentResult, RawContentItem
from ..models.crawler import ContentSelectors, CrawlerType, Source
from ..utils.content_extractor import extract_content, generate_preview
from ..utils.date_parser import is_within_days
from ..utils.http_client import HttpFetcher
from ..utils.title_cleaner import process_title


class BaseCrawlStrategy(CrawlStrategy):
    """Base class implementing the behavior common to all techniques."""

    crawler_type: CrawlerType = CrawlerType.STATIC
    default_within_days: Optional[int] = None

    def __init__(self, fetcher: Optional[HttpFetcher] = None):
        self._fetcher = fetcher
        self._owns_fetcher = fetcher is None
        self.logger = LoggerFactory.get_logger(
            name=f"{self.crawler_type.value}-strategy",
            logger_type=LoggerType.STANDARD,
            level=LogLevel.INFO,
        )

    @property
    def fetcher(self) -> HttpFetcher:
        if self._fetcher is None:
            self._fetcher = HttpFetcher()
        return self._fetcher

    def within_days(self, source: Source) -> int:
        """Recency window: source option, then technique default, then global."""
        configured = source.config.crawl_config.within_days
        if configured:
            return configured
        return self.default_within_days or settings.default_within_days

    def finalize_items(
        self, items: Iterable[RawContentItem], source: Source
    ) -> List[RawContentItem]:
        """
        Normalize titles, drop stale or unusable entries and duplicate links.
        """
        days = self.within_days(source)
        seen_links = set()
        result: List[RawContentItem] = []

        for item in items:
            if not item.is_usable or item.link in seen_links:
                continue
            title = process_title(item.title)
            if not title:
                continue
            if not is_within_days(item.published_at, days):
                self.logger.debug(f"Skipping stale item: {title[:40]}")
                continue
            seen_links.add(item.link)
            result.append(item.model_copy(update={"title": title}))

        return result

    async def delay(self, milliseconds: int) -> None:
        if milliseconds > 0:
            await asyncio.sleep(milliseconds / 1000)

    async def fetch_content(
        self, url: str, hints: Optional[ContentSelectors] = None
    ) -> Optional[ContentResult]:
        """Download an article page and return its body preview."""
        try:
            html = await self.fetcher.get_html(url)
        except CrawlerError as e:
            self.logger.warning(f"Content fetch failed for {url}: {e}")
            return None

        content = extract_content(html, url, hints)
        preview = generate_preview(content)
        return ContentResult(content=preview or None)

    async def close(self) -> None:
        if self._owns_fetcher and self._fetcher is not None:
            await self._fetcher.close()
            self._fetcher = None
