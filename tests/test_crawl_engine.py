# tests/test_crawl_engine.py

"""
Tests for the fallback execution engine.
"""

import asyncio
from typing import Dict, List, Optional

from insight_crawler.core.crawl_engine import CrawlEngine, convert_to_article
from insight_crawler.core.exceptions import ConfigurationError, FetchError
from insight_crawler.interfaces.crawl_strategy import CrawlStrategy
from insight_crawler.models.article import ContentResult, RawContentItem
from insight_crawler.models.crawler import (
    AttemptStatus,
    CrawlConfig,
    CrawlerType,
    DetectionMetadata,
    SelectorConfig,
    Source,
)


def real_items(count: int, content: Optional[str] = "Existing body") -> List[RawContentItem]:
    return [
        RawContentItem(
            title=f"Retail insight report number {i}",
            link=f"https://example.com/posts/{i}",
            content=content,
        )
        for i in range(count)
    ]


def garbage_batch() -> List[RawContentItem]:
    garbage = [
        RawContentItem(title=title, link=f"https://example.com/nav/{i}")
        for i, title in enumerate(["Login", "Subscribe", "1", "2", "3", "Next"])
    ]
    return garbage + real_items(4)


class FakeStrategy(CrawlStrategy):
    def __init__(
        self,
        crawler_type: CrawlerType,
        items: Optional[List[RawContentItem]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        body: Optional[str] = "Fetched body",
    ):
        self.crawler_type = crawler_type
        self.items = items or []
        self.error = error
        self.delay = delay
        self.body = body
        self.list_calls = 0
        self.fetched: List[str] = []
        self.seen_sources: List[Source] = []

    async def list_items(self, source: Source) -> List[RawContentItem]:
        self.list_calls += 1
        self.seen_sources.append(source)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.items)

    async def fetch_content(self, url, hints=None) -> Optional[ContentResult]:
        self.fetched.append(url)
        if self.body is None:
            raise FetchError("connection reset", url=url)
        return ContentResult(content=self.body, thumbnail_url="https://example.com/t.png")


class FakeFactory:
    def __init__(self, *strategies: FakeStrategy):
        self.strategies: Dict[CrawlerType, FakeStrategy] = {
            strategy.crawler_type: strategy for strategy in strategies
        }

    def get_strategy(self, crawler_type: CrawlerType) -> CrawlStrategy:
        return self.strategies[crawler_type]

    async def close(self) -> None:
        return None


def make_engine(*strategies: FakeStrategy, timeout: float = 5.0) -> CrawlEngine:
    return CrawlEngine(
        FakeFactory(*strategies),
        attempt_timeout=timeout,
        content_delay_ms=0,
        content_concurrency=2,
    )


def make_source(crawler_type: CrawlerType = CrawlerType.RSS, **kwargs) -> Source:
    return Source(
        id="src-1",
        name="Example Insights",
        url="https://example.com/insights",
        crawler_type=crawler_type,
        **kwargs,
    )


class TestCrawlEngine:
    """Test cases for CrawlEngine.run"""

    async def test_rejected_batch_falls_back(self):
        rss = FakeStrategy(CrawlerType.RSS, items=garbage_batch())
        static = FakeStrategy(CrawlerType.STATIC, items=real_items(5))
        spa = FakeStrategy(CrawlerType.SPA, items=real_items(5))
        engine = make_engine(rss, static, spa)

        result = await engine.run(make_source())

        assert result.strategy_used == CrawlerType.STATIC
        assert [a.status for a in result.attempts] == [
            AttemptStatus.REJECTED,
            AttemptStatus.SUCCEEDED,
        ]
        assert result.attempts[0].items == 10
        assert result.found == 5
        assert len(result.articles) == 5
        assert result.errors == []
        assert spa.list_calls == 0

    async def test_timeout_moves_to_next_technique(self):
        rss = FakeStrategy(CrawlerType.RSS, items=real_items(5), delay=1.0)
        static = FakeStrategy(CrawlerType.STATIC, items=real_items(3))
        engine = make_engine(rss, static, FakeStrategy(CrawlerType.SPA), timeout=0.05)

        result = await engine.run(make_source())

        assert result.attempts[0].status == AttemptStatus.TIMEOUT
        assert result.strategy_used == CrawlerType.STATIC

    async def test_errors_move_to_next_technique(self):
        rss = FakeStrategy(CrawlerType.RSS, error=FetchError("HTTP 500"))
        static = FakeStrategy(CrawlerType.STATIC, error=RuntimeError("boom"))
        spa = FakeStrategy(CrawlerType.SPA, items=real_items(3))
        engine = make_engine(rss, static, spa)

        result = await engine.run(make_source())

        assert [a.status for a in result.attempts] == [
            AttemptStatus.FAILED,
            AttemptStatus.FAILED,
            AttemptStatus.SUCCEEDED,
        ]
        assert "RuntimeError" in result.attempts[1].reason
        assert result.strategy_used == CrawlerType.SPA

    async def test_exhausted_chain_returns_no_articles(self):
        engine = make_engine(
            FakeStrategy(CrawlerType.RSS, items=garbage_batch()),
            FakeStrategy(CrawlerType.STATIC, items=[]),
            FakeStrategy(CrawlerType.SPA, error=FetchError("blocked")),
        )

        result = await engine.run(make_source())

        assert result.strategy_used is None
        assert result.articles == []
        assert result.found == 0
        assert len(result.attempts) == 3
        assert result.errors[0].startswith("All strategies failed")
        assert "rss(rejected)" in result.errors[0]

    async def test_configuration_error_stops_chain(self):
        rss = FakeStrategy(CrawlerType.RSS, error=ConfigurationError("bad selector"))
        static = FakeStrategy(CrawlerType.STATIC, items=real_items(3))
        engine = make_engine(rss, static, FakeStrategy(CrawlerType.SPA))

        result = await engine.run(make_source())

        assert result.strategy_used is None
        assert static.list_calls == 0
        assert "bad selector" in result.errors[0]

    async def test_unresolved_source_is_reported(self):
        engine = make_engine(FakeStrategy(CrawlerType.STATIC, items=real_items(3)))

        result = await engine.run(make_source(CrawlerType.AUTO))

        assert result.strategy_used is None
        assert result.attempts == []
        assert len(result.errors) == 1

    async def test_stored_fallback_chain_is_used(self):
        rss = FakeStrategy(CrawlerType.RSS, error=FetchError("gone"))
        static = FakeStrategy(CrawlerType.STATIC, items=real_items(3))
        spa = FakeStrategy(CrawlerType.SPA, items=real_items(3))
        source = make_source(
            config=CrawlConfig(
                detection=DetectionMetadata(fallback_strategies=[CrawlerType.SPA])
            )
        )

        result = await make_engine(rss, static, spa).run(source)

        assert result.strategy_used == CrawlerType.SPA
        assert static.list_calls == 0

    async def test_strategy_receives_merged_config(self):
        spa = FakeStrategy(CrawlerType.SPA, items=real_items(3))
        source = make_source(
            CrawlerType.SPA, config=CrawlConfig(selectors=SelectorConfig(item="li"))
        )

        await make_engine(spa, FakeStrategy(CrawlerType.STATIC)).run(
            source, override={"crawl_config": {"delay": 10}}
        )

        seen = spa.seen_sources[0]
        assert seen.crawler_type == CrawlerType.SPA
        assert seen.config.selectors.item == "li"
        assert seen.config.crawl_config.delay == 10

    async def test_missing_content_is_fetched(self):
        items = real_items(3, content=None)
        items[0] = items[0].model_copy(update={"content": "Listing body"})
        static = FakeStrategy(CrawlerType.STATIC, items=items)

        result = await make_engine(static, FakeStrategy(CrawlerType.SPA)).run(
            make_source(CrawlerType.STATIC)
        )

        assert len(static.fetched) == 2
        previews = [article.content_preview for article in result.articles]
        assert previews == ["Listing body", "Fetched body", "Fetched body"]
        assert result.articles[1].thumbnail_url == "https://example.com/t.png"

    async def test_failed_content_fetch_keeps_item(self):
        static = FakeStrategy(CrawlerType.STATIC, items=real_items(3, content=None), body=None)

        result = await make_engine(static, FakeStrategy(CrawlerType.SPA)).run(
            make_source(CrawlerType.STATIC)
        )

        assert result.strategy_used == CrawlerType.STATIC
        assert len(result.articles) == 3
        assert all(article.content_preview is None for article in result.articles)


class TestBuildChain:
    def test_explicit_fallbacks_are_deduplicated(self):
        engine = make_engine()
        chain = engine.build_chain(
            make_source(),
            fallbacks=[CrawlerType.RSS, CrawlerType.SPA, CrawlerType.SPA],
        )
        assert chain == [CrawlerType.RSS, CrawlerType.SPA]

    def test_primary_argument_overrides_source(self):
        chain = make_engine().build_chain(make_source(), primary=CrawlerType.API)
        assert chain == [CrawlerType.API, CrawlerType.STATIC]


class TestConvertToArticle:
    def test_article_fields(self):
        item = RawContentItem(
            title="Retail insight report",
            link="https://example.com/posts/1/?utm_source=feed",
            published_at="2024-03-10",
        )
        article = convert_to_article(item, make_source())

        assert article.url == "https://example.com/posts/1"
        assert article.source_id == "src-1"
        assert article.published_at.startswith("2024-03-10")
        assert len(article.id) > 0
