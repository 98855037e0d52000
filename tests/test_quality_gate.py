# tests/test_quality_gate.py

"""
Tests for the batch quality gate and garbage filters.
"""

from insight_crawler.models.article import CrawledArticle, RawContentItem
from insight_crawler.utils.quality_gate import (
    evaluate_quality,
    filter_garbage_articles,
    filter_garbage_items,
    is_garbage_item,
)


def make_item(title: str, link: str) -> RawContentItem:
    return RawContentItem(title=title, link=link)


def real_items(count: int):
    return [
        make_item(f"Retail insight report number {i}", f"https://example.com/posts/{i}")
        for i in range(count)
    ]


class TestEvaluateQuality:
    """Test cases for evaluate_quality."""

    def test_rejects_mostly_garbage_batch(self):
        garbage = [
            make_item(title, f"https://example.com/nav/{i}")
            for i, title in enumerate(["Login", "Subscribe", "1", "2", "3", "Next"])
        ]
        report = evaluate_quality(garbage + real_items(4))

        assert report.passed is False
        assert report.total == 10
        assert report.garbage == 6
        assert report.garbage_ratio == 0.6
        assert any("garbage ratio" in reason for reason in report.reasons)

    def test_accepts_clean_batch(self):
        report = evaluate_quality(real_items(5))

        assert report.passed is True
        assert report.valid == 5
        assert report.unique_title_ratio == 1.0
        assert report.unique_url_ratio == 1.0
        assert report.reasons == []

    def test_rejects_empty_batch(self):
        report = evaluate_quality([])
        assert report.passed is False
        assert report.reasons == ["no items found"]

    def test_rejects_single_valid_item(self):
        report = evaluate_quality(real_items(1))
        assert report.passed is False
        assert any("valid items" in reason for reason in report.reasons)

    def test_rejects_repeated_titles(self):
        items = [
            make_item("Accept cookies to continue", f"https://example.com/p/{i}")
            for i in range(4)
        ]
        report = evaluate_quality(items)
        assert report.passed is False
        assert report.unique_title_ratio == 0.25

    def test_rejects_repeated_urls(self):
        items = [
            make_item(f"Distinct headline {i}", "https://example.com/same")
            for i in range(4)
        ]
        report = evaluate_quality(items)
        assert report.passed is False
        assert report.unique_url_ratio == 0.25

    def test_passing_batch_satisfies_every_threshold(self):
        report = evaluate_quality(real_items(3) + [make_item("Login", "https://example.com/x")])
        assert report.passed is True
        assert report.total >= 2
        assert report.garbage_ratio < 0.5
        assert report.unique_title_ratio >= 0.5
        assert report.unique_url_ratio >= 0.5


class TestGarbageFilters:
    """Test cases for per-item garbage detection."""

    def test_url_patterns(self):
        assert is_garbage_item(make_item("Member area", "https://example.com/login?next=/"))
        assert is_garbage_item(make_item("Open menu", "javascript:void(0)"))
        assert not is_garbage_item(make_item("Member stories", "https://example.com/stories/1"))

    def test_filter_items(self):
        items = real_items(2) + [make_item("Privacy Policy", "https://example.com/p")]
        assert filter_garbage_items(items) == real_items(2)

    def test_filter_articles(self):
        articles = [
            CrawledArticle(
                id=str(i),
                source_id="s",
                source_name="Source",
                url=f"https://example.com/{path}",
                title=title,
            )
            for i, (title, path) in enumerate(
                [("Quarterly commerce outlook", "a/1"), ("Sign Up", "signup")]
            )
        ]
        kept = filter_garbage_articles(articles, "Source")
        assert [article.title for article in kept] == ["Quarterly commerce outlook"]
