# adapters/__init__.py

"""
Crawling technique implementations.
"""

from .api_strategy import APIStrategy
from .base_strategy import BaseCrawlStrategy
from .kakao_strategy import KakaoBrunchStrategy
from .naver_strategy import NaverBlogStrategy
from .newsletter_strategy import NewsletterStrategy
from .rss_strategy import RSSStrategy
from .sitemap_strategy import SitemapStrategy
from .spa_strategy import SPAStrategy
from .static_strategy import StaticStrategy

__all__ = [
    "APIStrategy",
    "BaseCrawlStrategy",
    "KakaoBrunchStrategy",
    "NaverBlogStrategy",
    "NewsletterStrategy",
    "RSSStrategy",
    "SitemapStrategy",
    "SPAStrategy",
    "StaticStrategy",
]
