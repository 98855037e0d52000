# core/crawl_engine.py

"""
Fallback execution engine.

Runs a source's primary technique and, when it times out, raises or returns
a batch the quality gate rejects, each fallback technique in order. The
first accepted batch is enriched with article bodies, converted and
returned. An exhausted chain returns no articles.
"""

import asyncio
import time
from typing import Dict, List, Optional, Union

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..interfaces.crawl_strategy import CrawlStrategy
from ..models.article import CrawledArticle, RawContentItem
from ..models.crawler import (
    AttemptRecord,
    AttemptStatus,
    CrawlConfig,
    CrawlerType,
    EngineResult,
    Source,
    dedupe_fallbacks,
)
from ..utils.date_parser import parse_date_to_iso
from ..utils.quality_gate import evaluate_quality, filter_garbage_articles
from ..utils.url_utils import generate_article_id, normalize_url
from .config import settings
from .config_resolver import ConfigLayer, resolve_crawl_config, resolve_fallback_chain
from .exceptions import ConfigurationError, CrawlerError
from .strategy_factory import StrategyFactory


def convert_to_article(
    item: RawContentItem, source: Source, category: Optional[str] = None
) -> CrawledArticle:
    """Turn an accepted raw item into a persistence-ready article."""
    date_format = source.config.selectors.date_format if source.config.selectors else None
    link = normalize_url(item.link)
    return CrawledArticle(
        id=generate_article_id(link),
        source_id=source.id,
        source_name=source.name,
        url=link,
        title=item.title,
        thumbnail_url=item.thumbnail_url,
        author=item.author,
        category=category or source.config.category,
        published_at=parse_date_to_iso(item.published_at, date_format=date_format),
        content_preview=item.content,
    )


class CrawlEngine:
    """Per-source fallback state machine."""

    def __init__(
        self,
        factory: StrategyFactory,
        attempt_timeout: Optional[float] = None,
        content_delay_ms: Optional[int] = None,
        content_concurrency: Optional[int] = None,
    ):
        self.factory = factory
        self.attempt_timeout = attempt_timeout or settings.attempt_timeout
        self.content_delay_ms = (
            settings.content_fetch_delay_ms
            if content_delay_ms is None
            else content_delay_ms
        )
        self.content_concurrency = content_concurrency or settings.content_fetch_concurrency
        self.logger = LoggerFactory.get_logger(
            name="crawl-engine",
            logger_type=LoggerType.STANDARD,
            level=LogLevel.INFO,
        )

    def build_chain(
        self,
        source: Source,
        primary: Optional[CrawlerType] = None,
        fallbacks: Optional[List[CrawlerType]] = None,
    ) -> List[CrawlerType]:
        """Primary technique followed by its de-duplicated fallbacks."""
        primary = primary or source.crawler_type
        if primary == CrawlerType.AUTO:
            raise ConfigurationError(
                f"Source {source.name} has not been resolved to a technique"
            )
        if fallbacks is None:
            chain = resolve_fallback_chain(primary, source.config.detection)
        else:
            chain = dedupe_fallbacks(primary, fallbacks)
        return [primary] + chain

    async def run(
        self,
        source: Source,
        primary: Optional[CrawlerType] = None,
        fallbacks: Optional[List[CrawlerType]] = None,
        override: ConfigLayer = None,
    ) -> EngineResult:
        """
        Crawl one source through its fallback chain.

        Args:
            source: Source to crawl
            primary: Technique to start with, defaults to the source's
            fallbacks: Explicit fallback order, defaults to the stored chain
            override: Configuration values for this run only

        Returns:
            EngineResult with articles and the record of every attempt
        """
        result = EngineResult()
        try:
            chain = self.build_chain(source, primary, fallbacks)
        except ConfigurationError as e:
            result.errors.append(str(e))
            return result

        self.logger.info(
            f"[{source.name}] Strategy chain: {' -> '.join(t.value for t in chain)}"
        )

        for technique in chain:
            started = time.monotonic()
            try:
                config = resolve_crawl_config(technique, source.config, override)
                strategy = self.factory.get_strategy(technique)
                attempt_source = source.model_copy(
                    update={"crawler_type": technique, "config": config}
                )
                items = await asyncio.wait_for(
                    strategy.list_items(attempt_source), timeout=self.attempt_timeout
                )
            except asyncio.TimeoutError:
                self._record(
                    result, technique, AttemptStatus.TIMEOUT, started,
                    reason=f"timed out after {self.attempt_timeout:.0f}s",
                )
                continue
            except ConfigurationError as e:
                # Stored configuration is broken; other techniques read it too
                self._record(result, technique, AttemptStatus.FAILED, started, reason=str(e))
                result.errors.append(str(e))
                return result
            except CrawlerError as e:
                self._record(result, technique, AttemptStatus.FAILED, started, reason=str(e))
                continue
            except Exception as e:
                self.logger.error(f"[{source.name}] {technique.value} crashed: {e}")
                self._record(
                    result, technique, AttemptStatus.FAILED, started,
                    reason=f"{e.__class__.__name__}: {e}",
                )
                continue

            report = evaluate_quality(items)
            if not report.passed:
                self._record(
                    result, technique, AttemptStatus.REJECTED, started,
                    items=len(items), reason="; ".join(report.reasons),
                )
                continue

            self._record(result, technique, AttemptStatus.SUCCEEDED, started, items=len(items))
            items = await self.fill_missing_content(strategy, items, config)
            articles = [convert_to_article(item, source) for item in items]

            result.articles = filter_garbage_articles(articles, source.name)
            result.found = len(items)
            result.strategy_used = technique
            result.quality = report
            self.logger.info(
                f"[{source.name}] {technique.value} succeeded with "
                f"{len(result.articles)} articles"
            )
            return result

        summary = ", ".join(
            f"{attempt.strategy.value}({attempt.status.value})" for attempt in result.attempts
        )
        self.logger.warning(f"[{source.name}] All strategies failed: {summary}")
        result.errors.append(f"All strategies failed: {summary}")
        return result

    def _record(
        self,
        result: EngineResult,
        technique: CrawlerType,
        status: AttemptStatus,
        started: float,
        items: int = 0,
        reason: Optional[str] = None,
    ) -> None:
        duration = time.monotonic() - started
        result.attempts.append(
            AttemptRecord(
                strategy=technique,
                status=status,
                items=items,
                duration=duration,
                reason=reason,
            )
        )
        if status == AttemptStatus.SUCCEEDED:
            return
        self.logger.info(
            f"{technique.value} {status.value} after {duration:.1f}s: {reason}"
        )

    async def fill_missing_content(
        self,
        strategy: CrawlStrategy,
        items: List[RawContentItem],
        config: CrawlConfig,
    ) -> List[RawContentItem]:
        """
        Fetch bodies for items the listing did not provide.

        Requests are bounded by a semaphore and spaced by the content delay.
        """
        semaphore = asyncio.Semaphore(self.content_concurrency)

        async def _fill(item: RawContentItem) -> RawContentItem:
            if item.content:
                return item
            async with semaphore:
                if self.content_delay_ms:
                    await asyncio.sleep(self.content_delay_ms / 1000)
                fetched = await strategy.fetch_content(item.link, config.content_selectors)
            if fetched is None:
                return item
            update: Dict[str, Union[str, None]] = {"content": fetched.content}
            if fetched.thumbnail_url and not item.thumbnail_url:
                update["thumbnail_url"] = fetched.thumbnail_url
            return item.model_copy(update=update)

        results = await asyncio.gather(
            *(_fill(item) for item in items), return_exceptions=True
        )

        filled: List[RawContentItem] = []
        for item, outcome in zip(items, results):
            if isinstance(outcome, Exception):
                self.logger.warning(f"Content fetch failed for {item.link}: {outcome}")
                filled.append(item)
            else:
                filled.append(outcome)
        return filled
