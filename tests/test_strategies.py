# tests/test_strategies.py

"""
Tests for the HTTP-based crawling techniques, with responses mocked by respx.
"""

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import httpx
import pytest
import respx

from insight_crawler.adapters.api_strategy import APIStrategy, fill_link_template, find_items
from insight_crawler.adapters.naver_strategy import extract_blog_id, to_mobile_url
from insight_crawler.adapters.newsletter_strategy import NewsletterPlatform, detect_platform
from insight_crawler.adapters.rss_strategy import RSSStrategy, parse_feed_entries
from insight_crawler.adapters.sitemap_strategy import (
    SitemapStrategy,
    parse_sitemap,
    resolve_sitemap_url,
)
from insight_crawler.adapters.static_strategy import StaticStrategy, with_query_param
from insight_crawler.core.exceptions import ConfigurationError, FetchError
from insight_crawler.core.strategy_factory import StrategyFactory
from insight_crawler.models.article import RawContentItem
from insight_crawler.models.api import (
    APIConfig,
    ApiPagination,
    ApiPaginationType,
    ResponseMapping,
    UrlTransform,
)
from insight_crawler.models.crawler import (
    CrawlConfig,
    CrawlerType,
    CrawlOptions,
    PaginationConfig,
    PaginationType,
    SelectorConfig,
    Source,
)
from insight_crawler.utils.http_client import HttpFetcher

NOW = datetime.now(timezone.utc)
RECENT_RFC822 = format_datetime(NOW - timedelta(days=1))
RECENT_ISO = (NOW - timedelta(days=1)).isoformat()

FEED = f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>Example Insights</title>
<item>
  <title>Consumer trends report</title>
  <link>https://example.com/posts/1?utm_source=rss</link>
  <pubDate>{RECENT_RFC822}</pubDate>
  <description><![CDATA[<p>Body text of the report <img src="https://example.com/i/1.png"></p>]]></description>
</item>
<item>
  <title>Old retail analysis</title>
  <link>https://example.com/posts/2</link>
  <pubDate>Mon, 01 Jan 2001 00:00:00 GMT</pubDate>
</item>
<item>
  <title>Undated market memo</title>
  <link>https://example.com/posts/3</link>
</item>
<item>
  <title>Consumer trends report again</title>
  <link>https://example.com/posts/1</link>
</item>
</channel></rss>"""


def make_source(crawler_type: CrawlerType, url: str, **config) -> Source:
    return Source(
        id="src",
        name="Example",
        url=url,
        crawler_type=crawler_type,
        config=CrawlConfig(**config),
    )


def not_found(router: respx.Router) -> None:
    router.route().mock(return_value=httpx.Response(404))


class TestRSSStrategy:
    """Test cases for the feed technique."""

    def test_parse_feed_entries(self):
        items = parse_feed_entries(FEED)

        assert len(items) == 4
        assert items[0].link == "https://example.com/posts/1"
        assert items[0].thumbnail_url == "https://example.com/i/1.png"
        assert "Body text" in items[0].content
        assert items[2].published_at is None

    async def test_list_items_filters_stale_and_duplicates(self):
        source = make_source(
            CrawlerType.RSS,
            "https://example.com/",
            crawl_config=CrawlOptions(rss_url="https://example.com/feed"),
        )
        async with respx.mock(assert_all_called=False) as router:
            router.get("https://example.com/feed").mock(
                return_value=httpx.Response(
                    200, text=FEED, headers={"content-type": "application/rss+xml"}
                )
            )
            not_found(router)

            async with HttpFetcher() as fetcher:
                items = await RSSStrategy(fetcher).list_items(source)

        assert [item.link for item in items] == [
            "https://example.com/posts/1",
            "https://example.com/posts/3",
        ]

    async def test_http_error_raises(self):
        source = make_source(CrawlerType.RSS, "https://example.com/feed")
        async with respx.mock(assert_all_called=False) as router:
            router.get("https://example.com/feed").mock(return_value=httpx.Response(500))

            async with HttpFetcher() as fetcher:
                with pytest.raises(FetchError):
                    await RSSStrategy(fetcher).list_items(source)


class TestAPIStrategy:
    """Test cases for the JSON API technique."""

    def test_find_items_prefers_mapping_then_conventions(self):
        assert find_items({"data": {"posts": [1, 2]}}, "data.posts") == [1, 2]
        assert find_items({"results": [3]}, "missing.path") == [3]
        assert find_items([4, 5], "") == [4, 5]
        assert find_items({"nothing": 1}, "data") is None

    def test_fill_link_template(self):
        item = {"id": 7, "slug": "consumer-trends"}
        assert (
            fill_link_template("https://example.com/{slug}/{id}", item, ["slug", "id"])
            == "https://example.com/consumer-trends/7"
        )
        assert fill_link_template("https://example.com/{uid}", item, ["uid"]) is None

    def test_parse_response_maps_fields(self):
        api = APIConfig(
            endpoint="https://example.com/api/posts",
            response_mapping=ResponseMapping(
                items="data.posts", title="title", link="slug", thumbnail="image.path"
            ),
            url_transform=UrlTransform(
                link_template="https://example.com/posts/{slug}", link_fields=["slug"]
            ),
        )
        response = {
            "data": {
                "posts": [
                    {"title": "Consumer trends", "slug": "trends", "image": {"path": "/img/1.png"}},
                    {"title": "", "slug": "untitled"},
                    {"title": "No slug here"},
                    "not an object",
                ]
            }
        }

        items = APIStrategy().parse_response(response, api)

        assert len(items) == 1
        assert items[0].link == "https://example.com/posts/trends"
        assert items[0].thumbnail_url == "https://example.com/img/1.png"

    async def test_page_pagination_stops_on_empty_page(self):
        pages = {
            "1": [{"title": "First insight post", "url": "/posts/1"},
                  {"title": "Second insight post", "url": "/posts/2"}],
            "2": [{"title": "Third insight post", "url": "/posts/3"}],
        }

        def respond(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": pages.get(request.url.params.get("page"), [])})

        api = APIConfig(
            endpoint="https://example.com/api/posts",
            pagination=ApiPagination(
                type=ApiPaginationType.PAGE, limit_param=None, max_pages=5, delay_ms=0
            ),
        )
        source = make_source(CrawlerType.API, "https://example.com/api/posts", api=api)

        async with respx.mock(assert_all_called=False) as router:
            route = router.get(host="example.com", path="/api/posts").mock(side_effect=respond)
            not_found(router)

            async with HttpFetcher() as fetcher:
                items = await APIStrategy(fetcher).list_items(source)

        assert [item.link for item in items] == [
            "https://example.com/posts/1",
            "https://example.com/posts/2",
            "https://example.com/posts/3",
        ]
        assert route.call_count == 3

    async def test_first_page_failure_raises(self):
        source = make_source(
            CrawlerType.API,
            "https://example.com/api/posts",
            api=APIConfig(endpoint="https://example.com/api/posts"),
        )
        async with respx.mock(assert_all_called=False) as router:
            router.get("https://example.com/api/posts").mock(return_value=httpx.Response(503))

            async with HttpFetcher() as fetcher:
                with pytest.raises(FetchError):
                    await APIStrategy(fetcher).list_items(source)


class TestSitemapStrategy:
    """Test cases for the sitemap technique."""

    def test_parse_sitemap_index_and_urlset(self):
        index = (
            '<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
            "<sitemap><loc>https://example.com/post-sitemap.xml</loc></sitemap>"
            "</sitemapindex>"
        )
        children, entries = parse_sitemap(index)
        assert children == ["https://example.com/post-sitemap.xml"]
        assert entries == []

        urlset = (
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
            "<url><loc>https://example.com/a</loc><lastmod>2024-03-01</lastmod></url>"
            "<url><loc>/relative</loc></url>"
            "</urlset>"
        )
        children, entries = parse_sitemap(urlset)
        assert children == []
        assert [(e.loc, e.lastmod) for e in entries] == [("https://example.com/a", "2024-03-01")]

    def test_resolve_sitemap_url(self):
        explicit = make_source(
            CrawlerType.SITEMAP,
            "https://example.com/blog",
            crawl_config=CrawlOptions(sitemap_url="https://example.com/post-sitemap.xml"),
        )
        assert resolve_sitemap_url(explicit) == "https://example.com/post-sitemap.xml"

        direct = make_source(CrawlerType.SITEMAP, "https://example.com/sitemap_index.xml")
        assert resolve_sitemap_url(direct) == "https://example.com/sitemap_index.xml"

        derived = make_source(CrawlerType.SITEMAP, "https://example.com/blog")
        assert resolve_sitemap_url(derived) == "https://example.com/sitemap.xml"

    async def test_list_items_reads_recent_pages(self):
        sitemap = (
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
            f"<url><loc>https://example.com/a</loc><lastmod>{RECENT_ISO}</lastmod></url>"
            "<url><loc>https://example.com/b</loc><lastmod>2001-01-01</lastmod></url>"
            "<url><loc>https://example.com/c</loc></url>"
            "</urlset>"
        )

        def page(title: str) -> httpx.Response:
            html = (
                f'<html><head><meta property="og:title" content="{title}"></head>'
                f"<body><article><p>{title} body paragraph with findings.</p></article></body></html>"
            )
            return httpx.Response(200, text=html, headers={"content-type": "text/html"})

        source = make_source(CrawlerType.SITEMAP, "https://example.com/blog")
        async with respx.mock(assert_all_called=False) as router:
            router.get("https://example.com/sitemap.xml").mock(
                return_value=httpx.Response(
                    200, text=sitemap, headers={"content-type": "application/xml"}
                )
            )
            router.get("https://example.com/a").mock(return_value=page("Recent report"))
            stale = router.get("https://example.com/b").mock(return_value=page("Stale report"))
            router.get("https://example.com/c").mock(return_value=page("Undated report"))
            not_found(router)

            async with HttpFetcher() as fetcher:
                items = await SitemapStrategy(fetcher).list_items(source)

        assert [item.link for item in items] == ["https://example.com/a", "https://example.com/c"]
        assert items[0].title == "Recent report"
        assert not stale.called


class TestStaticStrategy:
    """Test cases for the static HTML technique."""

    def test_with_query_param_replaces_value(self):
        assert (
            with_query_param("https://example.com/list?page=1&cat=a", "page", "2")
            == "https://example.com/list?cat=a&page=2"
        )

    async def test_follows_page_parameter_until_empty(self):
        pages = {
            None: ["Consumer trends report", "Retail outlook memo"],
            "2": ["Brand strategy review"],
        }

        def respond(request: httpx.Request) -> httpx.Response:
            titles = pages.get(request.url.params.get("page"), [])
            entries = "".join(
                f'<li class="post"><a href="/posts/{t.lower().replace(" ", "-")}">{t}</a></li>'
                for t in titles
            )
            return httpx.Response(
                200,
                text=f"<html><body><ul>{entries}</ul></body></html>",
                headers={"content-type": "text/html"},
            )

        source = make_source(
            CrawlerType.STATIC,
            "https://example.com/insights",
            selectors=SelectorConfig(item="li.post", title="a", link="a"),
            pagination=PaginationConfig(type=PaginationType.PAGE_PARAM, max_pages=5),
            crawl_config=CrawlOptions(delay=0),
        )
        async with respx.mock(assert_all_called=False) as router:
            route = router.get(host="example.com", path="/insights").mock(side_effect=respond)
            not_found(router)

            async with HttpFetcher() as fetcher:
                items = await StaticStrategy(fetcher).list_items(source)

        assert [item.title for item in items] == [
            "Consumer trends report",
            "Retail outlook memo",
            "Brand strategy review",
        ]
        # Pages 1 and 2 have items, page 3 is empty and stops the loop
        assert route.call_count == 3


class TestPlatformHelpers:
    @pytest.mark.parametrize(
        "url,blog_id",
        [
            ("https://blog.naver.com/insight_lab", "insight_lab"),
            ("https://m.blog.naver.com/insight_lab/22334455", "insight_lab"),
            ("https://blog.naver.com/PostList.naver?blogId=insight_lab", "insight_lab"),
        ],
    )
    def test_extract_blog_id(self, url, blog_id):
        assert extract_blog_id(url) == blog_id

    def test_to_mobile_url(self):
        assert to_mobile_url("https://blog.naver.com/a") == "https://m.blog.naver.com/a"
        assert to_mobile_url("https://m.blog.naver.com/a") == "https://m.blog.naver.com/a"

    @pytest.mark.parametrize(
        "url,platform",
        [
            ("https://page.stibee.com/archives/1", NewsletterPlatform.STIBEE),
            ("https://writer.substack.com/archive", NewsletterPlatform.SUBSTACK),
            ("https://us1.campaign-archive.com/home", NewsletterPlatform.MAILCHIMP),
            ("https://example.com/newsletter", NewsletterPlatform.GENERIC),
        ],
    )
    def test_detect_platform(self, url, platform):
        assert detect_platform(url) == platform


class TestFinalizeItems:
    def test_drops_unusable_duplicate_and_stale_items(self):
        strategy = StaticStrategy(HttpFetcher())
        source = make_source(CrawlerType.STATIC, "https://example.com/insights")
        items = [
            RawContentItem(title="Consumer trends report", link="https://example.com/p/1"),
            RawContentItem(title="Consumer trends report", link="https://example.com/p/1"),
            RawContentItem(title="Report without a link", link="  "),
            RawContentItem(title="   ", link="https://example.com/p/2"),
            RawContentItem(
                title="Retail outlook 2001",
                link="https://example.com/p/3",
                published_at="2001-01-01",
            ),
            RawContentItem(title="  Brand   strategy notes ", link="https://example.com/p/4"),
        ]

        result = strategy.finalize_items(items, source)

        assert [item.link for item in result] == [
            "https://example.com/p/1",
            "https://example.com/p/4",
        ]
        assert result[1].title == "Brand strategy notes"


class TestStrategyFactory:
    async def test_builds_and_caches_strategies(self):
        factory = StrategyFactory(fetcher=HttpFetcher())

        strategy = factory.get_strategy("rss")

        assert isinstance(strategy, RSSStrategy)
        assert factory.get_strategy(CrawlerType.RSS) is strategy
        assert CrawlerType.AUTO not in factory.supported_types
        assert len(factory.supported_types) == 8
        await factory.close()

    def test_auto_lists_supported_types(self):
        factory = StrategyFactory(fetcher=HttpFetcher())

        with pytest.raises(ConfigurationError) as error:
            factory.get_strategy(CrawlerType.AUTO)

        assert "supported: static, spa, rss" in str(error.value)

    def test_unknown_type(self):
        with pytest.raises(ConfigurationError):
            StrategyFactory(fetcher=HttpFetcher()).get_strategy("ftp")
