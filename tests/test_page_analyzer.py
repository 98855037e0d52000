# tests/test_page_analyzer.py

"""
Tests for rendering detection, rule-based selectors, CMS fingerprints and
feed link discovery.
"""

import pytest

from insight_crawler.services.page_analyzer import (
    calculate_spa_score,
    detect_by_rules,
    detect_cms,
    discover_feed_link,
)

PARAGRAPH = "Market research findings on consumer behaviour and retail trends. " * 20

LIST_PAGE = """
<html><body>
  <header><ul>
    <li><a href="/">Home</a></li><li><a href="/about">About</a></li>
    <li><a href="/blog">Blog</a></li><li><a href="/contact">Contact</a></li>
  </ul></header>
  <ul class="board">
""" + "".join(
    f"""
    <li>
      <a href="/p/{n}"><h3>Report number {n}</h3></a>
      <span class="date">2024.03.0{n}</span>
      <img src="/thumb/{n}.png">
    </li>"""
    for n in range(1, 6)
) + """
  </ul>
</body></html>
"""

TABLE_PAGE = """
<html><body>
  <table id="board">
    <thead><tr><th>Title</th><th>Date</th></tr></thead>
    <tbody>
      <tr><td><a href="/view?id=1">First notice posted</a></td><td>2024-03-01</td></tr>
      <tr><td><a href="/view?id=2">Second notice posted</a></td><td>2024-03-02</td></tr>
      <tr><td><a href="/view?id=3">Third notice posted</a></td><td>2024-03-03</td></tr>
    </tbody>
  </table>
</body></html>
"""


class TestSpaScore:
    """Test cases for the rendering requirement score."""

    def test_empty_body_with_mount_point_is_decisive(self):
        html = '<html><body><div id="root"></div><script src="/main.js"></script></body></html>'
        assert calculate_spa_score(html) == 1.0

    def test_server_rendered_articles_score_zero(self):
        articles = "".join(
            f"<article><h2>Post {n}</h2><p>{PARAGRAPH}</p></article>" for n in range(3)
        )
        html = f"<html><body><main>{articles}</main></body></html>"
        assert calculate_spa_score(html) == 0.0

    def test_bundler_fingerprint_adds_weight(self):
        html = (
            f'<html><body><div id="app"><p>{PARAGRAPH}</p></div>'
            '<script src="/js/chunk-vendors.js"></script></body></html>'
        )
        assert calculate_spa_score(html) == pytest.approx(0.4)

    def test_javascript_links_on_public_sector_portal(self):
        links = "".join(
            f'<a href="javascript:goPage({n})">Notice {n}</a>' for n in range(6)
        )
        html = f"<html><body><div>{links}</div></body></html>"
        score = calculate_spa_score(html, "https://www.example.go.kr/board")
        assert score == pytest.approx(0.6)

    def test_score_is_bounded(self):
        assert 0.0 <= calculate_spa_score("") <= 1.0


class TestDetectByRules:
    """Test cases for rule-based listing detection."""

    def test_detects_list_with_all_fields(self):
        candidate = detect_by_rules(LIST_PAGE)

        assert candidate is not None
        assert candidate.container == "ul.board"
        assert candidate.item == "li"
        assert candidate.title == "h3"
        assert candidate.link == "a"
        assert candidate.date == ".date"
        assert candidate.thumbnail == "img"
        assert candidate.count == 5
        assert candidate.score == 1.0

    def test_detects_table_rows(self):
        candidate = detect_by_rules(TABLE_PAGE)

        assert candidate is not None
        assert candidate.container == "#board"
        assert candidate.item == "tbody > tr"
        assert candidate.title == "a"
        assert candidate.date is None
        assert candidate.count == 3
        assert candidate.score == 0.6

    def test_navigation_is_ignored(self):
        html = """
        <html><body><nav><ul>
          <li><a href="/a">Section A</a></li><li><a href="/b">Section B</a></li>
          <li><a href="/c">Section C</a></li><li><a href="/d">Section D</a></li>
        </ul></nav><p>Nothing else here</p></body></html>
        """
        assert detect_by_rules(html) is None

    def test_candidate_converts_to_selector_config(self):
        selectors = detect_by_rules(LIST_PAGE).to_selector_config()

        assert selectors.container == "ul.board"
        assert selectors.item == "li"
        assert selectors.title == "h3"
        assert selectors.date == ".date"


class TestCmsAndFeeds:
    """Test cases for CMS fingerprints and feed discovery."""

    @pytest.mark.parametrize(
        "head,expected",
        [
            ('<meta name="generator" content="WordPress 6.4">', ("WordPress", "/feed")),
            ('<link rel="stylesheet" href="/wp-content/themes/a.css">', ("WordPress", "/feed")),
            ('<script src="https://t1.tistory.com/app.js"></script>', ("Tistory", "/rss")),
            ('<meta name="generator" content="Ghost 5.0">', ("Ghost", "/rss")),
            (
                '<meta property="al:android:package" content="com.medium.reader">',
                ("Medium", "/feed"),
            ),
        ],
    )
    def test_detect_cms(self, head, expected):
        html = f"<html><head>{head}</head><body></body></html>"
        signature = detect_cms(html)
        assert signature is not None
        assert (signature.name, signature.feed_path) == expected

    def test_unknown_cms(self):
        assert detect_cms("<html><head><title>Plain</title></head></html>") is None

    def test_discover_feed_link_is_absolute(self):
        html = (
            '<html><head><link rel="alternate" type="application/rss+xml" '
            'href="/feed"></head></html>'
        )
        assert discover_feed_link(html, "https://example.com/blog") == "https://example.com/feed"

    def test_no_feed_link(self):
        html = '<html><head><link rel="stylesheet" href="/a.css"></head></html>'
        assert discover_feed_link(html, "https://example.com/") is None
