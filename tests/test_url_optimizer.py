# tests/test_url_optimizer.py

"""
Tests for URL optimization with a fetcher that answers HEAD requests from a set.
"""

import asyncio
from typing import Iterable

from insight_crawler.models.detection import OptimizationMethod
from insight_crawler.services.url_optimizer import UrlOptimizer, is_root_url

NAV_PAGE = """
<html><body><nav>
  <a href="/about">About us</a>
  <a href="/blog">Blog</a>
  <a href="/news">News</a>
  <a href="/articles">Articles</a>
  <a href="https://other.example.org/blog">Partner blog</a>
</nav></body></html>
"""


class FakeFetcher:
    """Existence checks succeed for `live` URLs and track how many overlap."""

    def __init__(self, live: Iterable[str], delay: float = 0.02):
        self.live = set(live)
        self.delay = delay
        self.checked = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def exists(self, url, timeout=None):
        self.checked.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(self.delay)
        self.in_flight -= 1
        return url in self.live

    async def get_html(self, url, timeout=None):
        return "<html></html>"


class TestUrlOptimizer:
    """Test cases for UrlOptimizer.optimize"""

    def test_is_root_url(self):
        assert is_root_url("https://example.com")
        assert is_root_url("https://example.com/index.html")
        assert not is_root_url("https://example.com/company")

    async def test_navigation_links_checked_together(self):
        fetcher = FakeFetcher(
            live={"https://example.com/news", "https://example.com/articles"}
        )

        result = await UrlOptimizer(fetcher).optimize(
            "https://example.com/company", html=NAV_PAGE
        )

        assert result.optimized_url == "https://example.com/news"
        assert result.method == OptimizationMethod.HTML_DISCOVERY
        assert result.confidence == 0.75
        assert sorted(fetcher.checked) == [
            "https://example.com/articles",
            "https://example.com/blog",
            "https://example.com/news",
        ]
        assert fetcher.max_in_flight == 3

    async def test_root_url_prefers_content_path_order(self):
        fetcher = FakeFetcher(
            live={"https://example.com/blog", "https://example.com/feed"}
        )

        result = await UrlOptimizer(fetcher).optimize("https://example.com/", html="")

        assert result.optimized_url == "https://example.com/feed"
        assert result.method == OptimizationMethod.RULE_PATH

    async def test_declared_feed_link(self):
        page = (
            '<html><head><link rel="alternate" type="application/atom+xml" '
            'href="/atom.xml"></head></html>'
        )

        result = await UrlOptimizer(FakeFetcher(live=())).optimize(
            "https://example.com/company", html=page
        )

        assert result.optimized_url == "https://example.com/atom.xml"
        assert result.confidence == 0.9

    async def test_nothing_found_keeps_url(self):
        result = await UrlOptimizer(FakeFetcher(live=())).optimize(
            "https://example.com/company", html=NAV_PAGE
        )

        assert not result.changed
        assert result.method == OptimizationMethod.NO_CHANGE
