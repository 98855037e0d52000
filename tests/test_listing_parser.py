# tests/test_listing_parser.py

"""
Tests for selector-driven listing extraction.
"""

import pytest

from insight_crawler.core.exceptions import ConfigurationError
from insight_crawler.models.crawler import LinkProcessing, SelectorConfig
from insight_crawler.utils.listing_parser import (
    DEFAULT_SELECTORS,
    build_link,
    merge_selectors,
    parse_listing,
)

PAGE_URL = "https://example.com/blog/list"

LISTING_HTML = """
<html><body>
  <nav><a href="/login">Login</a></nav>
  <ul class="posts">
    <li class="post">
      <img data-src="/img/1.png">
      <a class="title" href="/posts/1?utm_source=feed">Consumer trends in 2024</a>
      <span class="date">2024.03.10</span>
      <span class="author">Kim</span>
    </li>
    <li class="post">
      <a class="title" href="https://example.com/posts/2/">Retail media playbook</a>
      <time class="date" datetime="2024-03-11">March 11</time>
    </li>
    <li class="post ad">
      <a class="title" href="/sponsored">Sponsored placement</a>
    </li>
    <li class="post">
      <a class="title" href="javascript:goView('42')">Loyalty program benchmarks</a>
    </li>
  </ul>
</body></html>
"""

SELECTORS = SelectorConfig(
    container="ul.posts",
    item="li.post",
    title=".title",
    link="a",
    date=".date",
    thumbnail="img",
    author=".author",
)


class TestParseListing:
    """Test cases for parse_listing."""

    def test_extracts_fields(self):
        items = parse_listing(LISTING_HTML, PAGE_URL, SELECTORS, exclude_selectors=[".ad"])

        assert [item.title for item in items] == [
            "Consumer trends in 2024",
            "Retail media playbook",
        ]
        first, second = items
        assert first.link == "https://example.com/posts/1"
        assert first.thumbnail_url == "https://example.com/img/1.png"
        assert first.published_at == "2024.03.10"
        assert first.author == "Kim"
        assert second.link == "https://example.com/posts/2"
        assert second.published_at == "2024-03-11"

    def test_javascript_links_need_a_template(self):
        processing = LinkProcessing(link_template="/view?id={0}")
        items = parse_listing(LISTING_HTML, PAGE_URL, SELECTORS, processing, [".ad"])

        assert items[-1].title == "Loyalty program benchmarks"
        assert items[-1].link == "https://example.com/view?id=42"

    def test_default_selectors(self):
        html = """
        <body>
          <article><h2>Quarterly outlook</h2><a href="/q1">read</a></article>
          <article><h2>Annual review</h2><a href="/annual">read</a></article>
        </body>
        """
        items = parse_listing(html, PAGE_URL)
        assert [(item.title, item.link) for item in items] == [
            ("Quarterly outlook", "https://example.com/q1"),
            ("Annual review", "https://example.com/annual"),
        ]

    def test_invalid_selector_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError):
            parse_listing(LISTING_HTML, PAGE_URL, SelectorConfig(item="li["))


class TestLinkBuilding:
    """Test cases for link helpers."""

    def test_base_url_and_removed_params(self):
        processing = LinkProcessing(
            base_url="https://m.example.com", remove_params=["session"]
        )
        assert (
            build_link("/a?id=1&session=x", PAGE_URL, processing)
            == "https://m.example.com/a?id=1"
        )

    def test_query_only_href_is_page_relative(self):
        assert build_link("?page=2", PAGE_URL) == "https://example.com/blog/list?page=2"

    def test_merge_selectors_keeps_defaults(self):
        merged = merge_selectors(SelectorConfig(item=".card", link=None))
        assert merged.item == ".card"
        assert merged.title == DEFAULT_SELECTORS.title
        assert merged.link == DEFAULT_SELECTORS.link
