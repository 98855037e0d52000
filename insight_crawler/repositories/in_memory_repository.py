# repositories/in_memory_repository.py

"""
Process-local storage of sources, articles and crawl logs.
"""

import asyncio
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..interfaces.source_repository import SourceRepository
from ..models.article import CrawledArticle
from ..models.crawler import CrawlLog, Source, StrategyResolution

logger = LoggerFactory.get_logger(
    name="in-memory-repository",
    logger_type=LoggerType.STANDARD,
    level=LogLevel.INFO,
)


def apply_resolution(source: Source, resolution: StrategyResolution) -> Source:
    """Return a copy of the source carrying what the resolver discovered."""
    config = source.config
    options_update = {}
    if resolution.rss_url:
        options_update["rss_url"] = resolution.rss_url
    if resolution.sitemap_url:
        options_update["sitemap_url"] = resolution.sitemap_url

    config_update = {"detection": resolution.to_detection_metadata()}
    if options_update:
        config_update["crawl_config"] = config.crawl_config.model_copy(
            update=options_update
        )
    if resolution.selectors is not None:
        config_update["selectors"] = resolution.selectors
    if resolution.exclude_selectors:
        config_update["exclude_selectors"] = list(resolution.exclude_selectors)
    if resolution.pagination is not None:
        config_update["pagination"] = resolution.pagination
    if resolution.api_config is not None:
        config_update["api"] = resolution.api_config

    return source.model_copy(
        update={
            "crawler_type": resolution.primary_strategy,
            "crawl_url": resolution.optimized_url or source.crawl_url,
            "config": config.model_copy(update=config_update),
        }
    )


class InMemorySourceRepository(SourceRepository):
    """Dictionary-backed repository used by the CLI and tests."""

    def __init__(self, sources: Optional[Iterable[Source]] = None):
        self._sources: Dict[str, Source] = {s.id: s for s in sources or []}
        self._articles: Dict[str, CrawledArticle] = {}
        self._logs: List[CrawlLog] = []
        self._lock = asyncio.Lock()

    @property
    def articles(self) -> List[CrawledArticle]:
        return list(self._articles.values())

    @property
    def logs(self) -> List[CrawlLog]:
        return list(self._logs)

    async def add_source(self, source: Source) -> None:
        async with self._lock:
            self._sources[source.id] = source

    async def get_active_sources(self) -> List[Source]:
        active = [s for s in self._sources.values() if s.is_active]
        return sorted(active, key=lambda s: s.priority, reverse=True)

    async def get_source(self, source_id: str) -> Optional[Source]:
        return self._sources.get(source_id)

    async def save_resolution(
        self, source_id: str, resolution: StrategyResolution
    ) -> Optional[Source]:
        async with self._lock:
            source = self._sources.get(source_id)
            if source is None:
                logger.warning(f"Cannot save resolution, unknown source {source_id}")
                return None
            updated = apply_resolution(source, resolution)
            self._sources[source_id] = updated
            return updated

    async def mark_crawled(self, source_id: str, crawled_at: datetime) -> None:
        async with self._lock:
            source = self._sources.get(source_id)
            if source is not None:
                self._sources[source_id] = source.model_copy(
                    update={"last_crawled_at": crawled_at}
                )

    async def save_articles(self, articles: List[CrawledArticle]) -> int:
        new_count = 0
        async with self._lock:
            for article in articles:
                if article.id in self._articles:
                    continue
                self._articles[article.id] = article
                new_count += 1
        logger.debug(f"Stored {new_count} new of {len(articles)} articles")
        return new_count

    async def save_crawl_log(self, log: CrawlLog) -> None:
        async with self._lock:
            self._logs.append(log)
