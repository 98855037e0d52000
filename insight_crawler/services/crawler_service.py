# services/crawler_service.py

"""
Crawler service layer: resolves sources, runs the fallback engine and
persists what it returns.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import List, Optional

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..core.config import settings
from ..core.config_resolver import ConfigLayer
from ..core.crawl_engine import CrawlEngine
from ..interfaces.source_repository import SourceRepository
from ..models.crawler import (
    CrawlerType,
    CrawlLog,
    CrawlResult,
    CrawlStatus,
    Source,
    StrategyResolution,
)
from ..repositories.in_memory_repository import apply_resolution
from ..utils.browser_pool import BrowserPool
from .strategy_resolver import StrategyResolver

logger = LoggerFactory.get_logger(
    name="crawler-service", logger_type=LoggerType.STANDARD, level=LogLevel.INFO
)


class CrawlerService:
    """
    Service layer for crawl runs.

    Each source is isolated: a failure in one never stops the others, and
    every run leaves exactly one CrawlLog behind.
    """

    def __init__(
        self,
        repository: SourceRepository,
        engine: CrawlEngine,
        resolver: Optional[StrategyResolver] = None,
        browser_pool: Optional[BrowserPool] = None,
        source_delay_ms: Optional[int] = None,
        source_concurrency: Optional[int] = None,
    ):
        """
        Initialize crawler service.

        Args:
            repository: Storage for sources, articles and logs
            engine: Fallback execution engine
            resolver: Resolver used for sources still set to auto
            browser_pool: Shared browser closed after batch runs
            source_delay_ms: Pause before each source in a batch
            source_concurrency: Sources crawled at the same time
        """
        self.repository = repository
        self.engine = engine
        self.resolver = resolver
        self.browser_pool = browser_pool
        self.source_delay_ms = (
            settings.source_delay_ms if source_delay_ms is None else source_delay_ms
        )
        self.source_concurrency = source_concurrency or settings.source_concurrency

    async def resolve_source(self, source: Source) -> Source:
        """
        Resolve a source's strategy and write the result back.

        Returns:
            The updated source, or the source unchanged without a resolver
        """
        if self.resolver is None:
            logger.warning(f"No resolver configured, cannot resolve {source.name}")
            return source

        resolution = await self.resolver.resolve(source.url)
        updated = await self.repository.save_resolution(source.id, resolution)
        if updated is None:
            # Ad hoc sources are not stored; apply the resolution in place
            updated = apply_resolution(source, resolution)
        logger.info(
            f"[{source.name}] Resolved to {resolution.primary_strategy.value} "
            f"via {resolution.detection_method.value}"
        )
        return updated

    async def preview_resolution(self, url: str) -> Optional[StrategyResolution]:
        if self.resolver is None:
            return None
        return await self.resolver.resolve(url)

    async def crawl_source(
        self, source: Source, override: ConfigLayer = None
    ) -> CrawlResult:
        """
        Crawl one source and store new articles.

        Args:
            source: Source to crawl; resolved first when still set to auto
            override: Configuration values for this run only

        Returns:
            CrawlResult with found/new counts and error strings
        """
        started = time.monotonic()
        if source.crawler_type == CrawlerType.AUTO and self.resolver is not None:
            source = await self.resolve_source(source)

        engine_result = await self.engine.run(source, override=override)
        result = CrawlResult(
            source_id=source.id,
            source_name=source.name,
            found=engine_result.found,
            errors=list(engine_result.errors),
            strategy_used=engine_result.strategy_used,
            attempts=engine_result.attempts,
        )

        if engine_result.succeeded:
            if engine_result.articles:
                result.new = await self.repository.save_articles(engine_result.articles)
            await self.repository.mark_crawled(source.id, datetime.now(timezone.utc))

        result.duration = time.monotonic() - started
        logger.info(
            f"[{source.name}] found {result.found}, new {result.new}, "
            f"errors {len(result.errors)} in {result.duration:.1f}s"
        )
        return result

    async def crawl_all_sources(self) -> List[CrawlResult]:
        """
        Crawl every active source in priority order.

        Returns:
            One CrawlResult per source, in priority order
        """
        sources = await self.repository.get_active_sources()
        logger.info(f"Starting crawl of {len(sources)} active sources")

        semaphore = asyncio.Semaphore(self.source_concurrency)

        async def _run(index: int, source: Source) -> CrawlResult:
            async with semaphore:
                if index and self.source_delay_ms:
                    await asyncio.sleep(self.source_delay_ms / 1000)
                return await self._crawl_isolated(source)

        try:
            results = await asyncio.gather(
                *(_run(index, source) for index, source in enumerate(sources))
            )
        finally:
            if self.browser_pool is not None:
                await self.browser_pool.close()

        succeeded = sum(1 for result in results if result.success)
        logger.info(f"Crawl finished: {succeeded}/{len(results)} sources succeeded")
        return list(results)

    async def _crawl_isolated(self, source: Source) -> CrawlResult:
        started_at = datetime.now(timezone.utc)
        try:
            result = await self.crawl_source(source)
        except Exception as e:
            logger.error(f"[{source.name}] Crawl failed: {e}")
            result = CrawlResult(
                source_id=source.id,
                source_name=source.name,
                errors=[f"{e.__class__.__name__}: {e}"],
            )

        log = CrawlLog(
            source_id=source.id,
            status=CrawlStatus.SUCCESS if result.success else CrawlStatus.FAILED,
            started_at=started_at,
            items_found=result.found,
            items_new=result.new,
            error_message="; ".join(result.errors) or None,
        )
        try:
            await self.repository.save_crawl_log(log)
        except Exception as e:
            logger.error(f"[{source.name}] Could not save crawl log: {e}")
        return result
