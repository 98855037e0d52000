# tests/test_crawler_service.py

"""
Tests for the crawler service and the in-memory repository.
"""

from typing import Dict, List

from insight_crawler.models.article import CrawledArticle
from insight_crawler.models.crawler import (
    AttemptRecord,
    AttemptStatus,
    CrawlerType,
    CrawlStatus,
    DetectionMethod,
    EngineResult,
    SelectorConfig,
    Source,
    StrategyResolution,
)
from insight_crawler.repositories import InMemorySourceRepository, apply_resolution
from insight_crawler.services.crawler_service import CrawlerService


def make_article(source: Source, n: int) -> CrawledArticle:
    return CrawledArticle(
        id=f"{source.id}-{n}",
        source_id=source.id,
        source_name=source.name,
        url=f"https://example.com/{source.id}/{n}",
        title=f"Insight report {n}",
    )


def make_source(source_id: str, priority: int = 0, **kwargs) -> Source:
    return Source(
        id=source_id,
        name=f"Source {source_id}",
        url=f"https://{source_id}.example.com/blog",
        crawler_type=kwargs.pop("crawler_type", CrawlerType.STATIC),
        priority=priority,
        **kwargs,
    )


class FakeEngine:
    """Returns canned results per source id; raises for ids in `crash`."""

    def __init__(self, articles: Dict[str, int] = None, crash=(), fail=()):
        self.articles = articles or {}
        self.crash = set(crash)
        self.fail = set(fail)
        self.calls: List[Source] = []

    async def run(self, source: Source, override=None) -> EngineResult:
        self.calls.append(source)
        if source.id in self.crash:
            raise RuntimeError("engine exploded")
        if source.id in self.fail:
            return EngineResult(
                attempts=[AttemptRecord(strategy=source.crawler_type, status=AttemptStatus.FAILED)],
                errors=["All strategies failed: static(failed)"],
            )
        count = self.articles.get(source.id, 2)
        return EngineResult(
            articles=[make_article(source, n) for n in range(count)],
            found=count,
            strategy_used=source.crawler_type,
        )


class FakeResolver:
    def __init__(self, resolution: StrategyResolution):
        self.resolution = resolution
        self.resolved: List[str] = []

    async def resolve(self, url: str) -> StrategyResolution:
        self.resolved.append(url)
        return self.resolution


RSS_RESOLUTION = StrategyResolution(
    primary_strategy=CrawlerType.RSS,
    fallback_strategies=[CrawlerType.STATIC, CrawlerType.SPA],
    rss_url="https://a.example.com/feed",
    confidence=0.95,
    detection_method=DetectionMethod.RSS_DISCOVERY,
)


class TestApplyResolution:
    def test_writes_discoveries_into_config(self):
        source = make_source("a", crawler_type=CrawlerType.AUTO)
        resolution = RSS_RESOLUTION.model_copy(
            update={
                "selectors": SelectorConfig(item="li", title="h3"),
                "optimized_url": "https://a.example.com/insights",
            }
        )

        updated = apply_resolution(source, resolution)

        assert updated.crawler_type == CrawlerType.RSS
        assert updated.crawl_url == "https://a.example.com/insights"
        assert updated.config.crawl_config.rss_url == "https://a.example.com/feed"
        assert updated.config.selectors.item == "li"
        assert updated.config.detection.method == DetectionMethod.RSS_DISCOVERY
        assert updated.config.detection.fallback_strategies == [
            CrawlerType.STATIC,
            CrawlerType.SPA,
        ]
        assert source.crawler_type == CrawlerType.AUTO

    def test_keeps_existing_crawl_url(self):
        source = make_source("a", crawl_url="https://a.example.com/list")
        updated = apply_resolution(source, RSS_RESOLUTION)
        assert updated.crawl_url == "https://a.example.com/list"


class TestInMemorySourceRepository:
    async def test_active_sources_by_priority(self):
        repository = InMemorySourceRepository(
            [make_source("low", 1), make_source("high", 9), make_source("off", 5, is_active=False)]
        )
        sources = await repository.get_active_sources()
        assert [s.id for s in sources] == ["high", "low"]

    async def test_save_articles_counts_new_only(self):
        source = make_source("a")
        repository = InMemorySourceRepository([source])

        first = await repository.save_articles([make_article(source, 0), make_article(source, 1)])
        second = await repository.save_articles([make_article(source, 1), make_article(source, 2)])

        assert (first, second) == (2, 1)
        assert len(repository.articles) == 3

    async def test_save_resolution_for_unknown_source(self):
        repository = InMemorySourceRepository()
        assert await repository.save_resolution("missing", RSS_RESOLUTION) is None


class TestCrawlerService:
    """Test cases for CrawlerService"""

    async def test_crawl_source_stores_articles(self):
        source = make_source("a")
        repository = InMemorySourceRepository([source])
        service = CrawlerService(repository, FakeEngine({"a": 3}), source_delay_ms=0)

        result = await service.crawl_source(source)

        assert result.success
        assert (result.found, result.new) == (3, 3)
        assert result.strategy_used == CrawlerType.STATIC
        assert (await repository.get_source("a")).last_crawled_at is not None

    async def test_auto_source_is_resolved_first(self):
        source = make_source("a", crawler_type=CrawlerType.AUTO)
        repository = InMemorySourceRepository([source])
        engine = FakeEngine()
        resolver = FakeResolver(RSS_RESOLUTION)
        service = CrawlerService(repository, engine, resolver=resolver, source_delay_ms=0)

        await service.crawl_source(source)

        assert resolver.resolved == ["https://a.example.com/blog"]
        assert engine.calls[0].crawler_type == CrawlerType.RSS
        stored = await repository.get_source("a")
        assert stored.config.crawl_config.rss_url == "https://a.example.com/feed"

    async def test_unstored_source_still_gets_resolution(self):
        source = make_source("adhoc", crawler_type=CrawlerType.AUTO)
        engine = FakeEngine()
        service = CrawlerService(
            InMemorySourceRepository(), engine, resolver=FakeResolver(RSS_RESOLUTION)
        )

        await service.crawl_source(source)

        assert engine.calls[0].crawler_type == CrawlerType.RSS

    async def test_failed_run_does_not_mark_crawled(self):
        source = make_source("a")
        repository = InMemorySourceRepository([source])
        service = CrawlerService(repository, FakeEngine(fail={"a"}), source_delay_ms=0)

        result = await service.crawl_source(source)

        assert not result.success
        assert result.errors == ["All strategies failed: static(failed)"]
        assert (await repository.get_source("a")).last_crawled_at is None
        assert repository.articles == []

    async def test_batch_isolates_failures_and_logs_every_source(self):
        sources = [make_source("a", 3), make_source("b", 2), make_source("c", 1)]
        repository = InMemorySourceRepository(sources)
        engine = FakeEngine({"a": 2, "c": 4}, crash={"b"})
        service = CrawlerService(repository, engine, source_delay_ms=0, source_concurrency=1)

        results = await service.crawl_all_sources()

        assert [r.source_id for r in results] == ["a", "b", "c"]
        assert [r.success for r in results] == [True, False, True]
        assert "RuntimeError: engine exploded" in results[1].errors[0]
        assert [r.new for r in results] == [2, 0, 4]

        logs = {log.source_id: log for log in repository.logs}
        assert len(repository.logs) == 3
        assert logs["a"].status == CrawlStatus.SUCCESS
        assert logs["b"].status == CrawlStatus.FAILED
        assert logs["b"].error_message.startswith("RuntimeError")
        assert logs["c"].items_found == 4

    async def test_preview_without_resolver(self):
        service = CrawlerService(InMemorySourceRepository(), FakeEngine())
        assert await service.preview_resolution("https://example.com") is None
