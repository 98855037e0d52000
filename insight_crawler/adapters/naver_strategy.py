# adapters/naver_strategy.py

"""
Naver Blog technique.

Naver publishes a per-blog RSS feed; the post list page is parsed only when
the feed is unavailable or empty.
"""

import re
from typing import List, Optional
from urllib.parse import parse_qs, urlparse

import feedparser

from ..core.exceptions import CrawlerError
from ..models.article import ContentResult, RawContentItem
from ..models.crawler import (
    ContentSelectors,
    CrawlerType,
    LinkProcessing,
    SelectorConfig,
    Source,
)
from ..utils.content_extractor import extract_content, generate_preview
from ..utils.listing_parser import parse_listing
from .base_strategy import BaseCrawlStrategy
from .rss_strategy import fetch_feed, items_from_feed

NAVER_BLOG_HOST = "https://blog.naver.com"
NAVER_FEED_TEMPLATE = "https://rss.blog.naver.com/{blog_id}.xml"
NAVER_LIST_TEMPLATE = (
    "https://blog.naver.com/PostList.naver?blogId={blog_id}&from=postList&categoryNo=0"
)
NAVER_CONTENT_SELECTOR = (
    ".se-main-container, .post-view, #postViewArea, .se_component_wrap"
)
NAVER_LIST_ITEM_SELECTORS = [
    ".blog-list-item",
    ".post-item",
    ".lst_tit a",
    "#listTopForm tr",
    ".blog2_post",
]
NAVER_TRACKING_PARAMS = ["Redirect", "ref", "trackingCode"]
MOBILE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15"
)

_BLOG_ID = re.compile(r"blog\.naver\.com/([^/?#]+)")


def extract_blog_id(url: str) -> Optional[str]:
    """
    Find the blog id in any Naver blog URL.

    Handles https://blog.naver.com/{id}, m.blog.naver.com and the
    PostList.naver?blogId={id} form.
    """
    parsed = urlparse(url)
    blog_ids = parse_qs(parsed.query).get("blogId")
    if blog_ids:
        return blog_ids[0]

    match = _BLOG_ID.search(url)
    if match and not match.group(1).endswith(".naver"):
        return match.group(1)

    parts = [part for part in parsed.path.split("/") if part]
    if parts and not parts[0].endswith(".naver"):
        return parts[0]
    return None


def to_mobile_url(url: str) -> str:
    if "m.blog.naver.com" in url:
        return url
    return url.replace("blog.naver.com", "m.blog.naver.com", 1)


class NaverBlogStrategy(BaseCrawlStrategy):
    """Crawls a single Naver blog."""

    crawler_type = CrawlerType.PLATFORM_NAVER

    link_processing = LinkProcessing(
        base_url=NAVER_BLOG_HOST, remove_params=NAVER_TRACKING_PARAMS
    )

    async def list_items(self, source: Source) -> List[RawContentItem]:
        blog_id = extract_blog_id(source.effective_url)
        if not blog_id:
            self.logger.error(f"Cannot extract blog id from {source.effective_url}")
            return []

        items = await self._from_feed(blog_id)
        if not items:
            self.logger.info(f"Feed empty for {blog_id}, parsing post list")
            items = await self._from_post_list(blog_id)

        result = self.finalize_items(items, source)
        self.logger.info(f"Found {len(result)} items for {source.name}")
        return result

    async def _from_feed(self, blog_id: str) -> List[RawContentItem]:
        feed_url = NAVER_FEED_TEMPLATE.format(blog_id=blog_id)
        try:
            feed_text = await fetch_feed(self.fetcher, feed_url)
        except CrawlerError as e:
            self.logger.warning(f"Naver feed unavailable: {e}")
            return []
        return items_from_feed(feedparser.parse(feed_text), self.link_processing)

    async def _from_post_list(self, blog_id: str) -> List[RawContentItem]:
        list_url = NAVER_LIST_TEMPLATE.format(blog_id=blog_id)
        html = await self.fetcher.get_html(list_url)

        for item_selector in NAVER_LIST_ITEM_SELECTORS:
            selectors = SelectorConfig(
                item=item_selector,
                title=".title, .tit, a",
                link="a",
                date=".date, .datetime, time, [datetime]",
            )
            items = parse_listing(
                html, list_url, selectors=selectors, link_processing=self.link_processing
            )
            if items:
                return items
        return []

    async def fetch_content(
        self, url: str, hints: Optional[ContentSelectors] = None
    ) -> Optional[ContentResult]:
        """Read the post body from the mobile page, which has no frames."""
        mobile_url = to_mobile_url(url)
        try:
            response = await self.fetcher.get(
                mobile_url, headers={"User-Agent": MOBILE_USER_AGENT}
            )
        except CrawlerError as e:
            self.logger.warning(f"Content fetch failed for {mobile_url}: {e}")
            return None
        if not response.ok:
            self.logger.warning(
                f"Content fetch failed for {mobile_url}: HTTP {response.status}"
            )
            return None

        if hints is None or not hints.content:
            hints = (hints or ContentSelectors()).model_copy(
                update={"content": NAVER_CONTENT_SELECTOR}
            )
        content = generate_preview(extract_content(response.text, mobile_url, hints))
        return ContentResult(content=content or None)
