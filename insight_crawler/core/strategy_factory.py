# core/strategy_factory.py

"""
Factory mapping technique names to crawl strategy instances.
"""

from typing import Callable, Dict, List, Optional, Union

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..adapters.api_strategy import APIStrategy
from ..adapters.kakao_strategy import KakaoBrunchStrategy
from ..adapters.naver_strategy import NaverBlogStrategy
from ..adapters.newsletter_strategy import NewsletterStrategy
from ..adapters.rss_strategy import RSSStrategy
from ..adapters.sitemap_strategy import SitemapStrategy
from ..adapters.spa_strategy import SPAStrategy
from ..adapters.static_strategy import StaticStrategy
from ..interfaces.crawl_strategy import CrawlStrategy
from ..models.crawler import CrawlerType
from ..utils.browser_pool import BrowserPool
from ..utils.http_client import HttpFetcher
from .exceptions import ConfigurationError


class StrategyFactory:
    """
    Creates and caches one strategy per technique.

    Strategies share the factory's HTTP fetcher and browser pool, so closing
    the factory releases every network resource the strategies hold.
    """

    def __init__(
        self,
        fetcher: Optional[HttpFetcher] = None,
        browser_pool: Optional[BrowserPool] = None,
    ):
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or HttpFetcher()
        self._owns_pool = browser_pool is None
        self.browser_pool = browser_pool or BrowserPool()
        self._instances: Dict[CrawlerType, CrawlStrategy] = {}
        self._builders: Dict[CrawlerType, Callable[[], CrawlStrategy]] = {
            CrawlerType.STATIC: lambda: StaticStrategy(self.fetcher),
            CrawlerType.SPA: lambda: SPAStrategy(self.browser_pool, self.fetcher),
            CrawlerType.RSS: lambda: RSSStrategy(self.fetcher),
            CrawlerType.SITEMAP: lambda: SitemapStrategy(self.fetcher),
            CrawlerType.API: lambda: APIStrategy(self.fetcher),
            CrawlerType.PLATFORM_NAVER: lambda: NaverBlogStrategy(self.fetcher),
            CrawlerType.PLATFORM_KAKAO: lambda: KakaoBrunchStrategy(self.fetcher),
            CrawlerType.NEWSLETTER: lambda: NewsletterStrategy(self.fetcher),
        }
        self.logger = LoggerFactory.get_logger(
            name="strategy-factory",
            logger_type=LoggerType.STANDARD,
            level=LogLevel.INFO,
        )

    @property
    def supported_types(self) -> List[CrawlerType]:
        return list(self._builders)

    def get_strategy(self, crawler_type: Union[CrawlerType, str]) -> CrawlStrategy:
        """
        Get or create the strategy for a technique.

        Args:
            crawler_type: Technique enum or its string value

        Returns:
            Cached CrawlStrategy instance

        Raises:
            ConfigurationError: If the technique is unknown or is AUTO
        """
        try:
            crawler_type = CrawlerType(crawler_type)
        except ValueError:
            raise ConfigurationError(f"Unknown crawler type: {crawler_type}")

        if crawler_type in self._instances:
            return self._instances[crawler_type]

        builder = self._builders.get(crawler_type)
        if builder is None:
            supported = ", ".join(t.value for t in self.supported_types)
            raise ConfigurationError(
                f"No strategy for crawler type: {crawler_type.value} "
                f"(supported: {supported})"
            )

        strategy = builder()
        self._instances[crawler_type] = strategy
        self.logger.debug(f"Created strategy: {crawler_type.value}")
        return strategy

    async def close(self) -> None:
        """Close every created strategy, then the shared fetcher and browser."""
        for strategy in self._instances.values():
            await strategy.close()
        self._instances.clear()
        if self._owns_fetcher:
            await self.fetcher.close()
        if self._owns_pool:
            await self.browser_pool.close()
