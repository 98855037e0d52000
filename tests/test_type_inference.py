# tests/test_type_inference.py

"""
Tests for URL-based technique inference.
"""

import pytest

from insight_crawler.models.crawler import CrawlerType
from insight_crawler.services.type_inference import infer_crawler_type


class TestInferCrawlerType:
    @pytest.mark.parametrize(
        "url,crawler_type,confidence",
        [
            ("https://example.com/feed", CrawlerType.RSS, 0.95),
            ("https://example.com/atom.xml", CrawlerType.RSS, 0.95),
            ("https://blog.naver.com/someone", CrawlerType.PLATFORM_NAVER, 0.95),
            ("https://m.post.naver.com/someone", CrawlerType.PLATFORM_NAVER, 0.85),
            ("https://brunch.co.kr/@writer", CrawlerType.PLATFORM_KAKAO, 0.95),
            ("https://page.stibee.com/archives/123", CrawlerType.NEWSLETTER, 0.9),
            ("https://writer.substack.com/archive", CrawlerType.NEWSLETTER, 0.9),
            ("https://example.com/api/posts", CrawlerType.API, 0.85),
            ("https://someone.tistory.com/category", CrawlerType.STATIC, 0.75),
            ("https://www.kocca.or.kr/board/list", CrawlerType.SPA, 0.95),
            ("https://example.com/react-app/news", CrawlerType.SPA, 0.7),
        ],
    )
    def test_known_patterns(self, url, crawler_type, confidence):
        inference = infer_crawler_type(url)
        assert inference.crawler_type == crawler_type
        assert inference.confidence == confidence

    def test_unknown_url_defaults_to_rendered(self):
        inference = infer_crawler_type("https://example.com/insights")
        assert inference.crawler_type == CrawlerType.SPA
        assert inference.confidence == 0.5

    def test_matching_is_case_insensitive(self):
        assert infer_crawler_type("https://EXAMPLE.com/RSS").crawler_type == CrawlerType.RSS

    def test_feed_marker_wins_over_platform(self):
        inference = infer_crawler_type("https://blog.naver.com/rss/someone")
        assert inference.crawler_type == CrawlerType.RSS
