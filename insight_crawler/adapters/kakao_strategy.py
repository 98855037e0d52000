# adapters/kakao_strategy.py

"""
Kakao Brunch technique.

Author pages have an RSS feed at brunch.co.kr/rss/@@{author}. Magazines and
other Brunch pages are parsed as HTML.
"""

import re
from typing import List, Optional

import feedparser

from ..core.config import settings
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

BRUNCH_HOST = "https://brunch.co.kr"
BRUNCH_CONTENT_SELECTOR = ".wrap_body, .wrap_article_body, article .text"

_AUTHOR_ID = re.compile(r"brunch\.co\.kr/@@?([^/?#]+)")
_MAGAZINE_ID = re.compile(r"brunch\.co\.kr/magazine/([^/?#]+)")

AUTHOR_SELECTORS = SelectorConfig(
    item=".list_article li, .wrap_article_list li, article.card",
    title=".tit_article, .title, h2",
    link="a",
    thumbnail="img",
    date=".publish_time, .date, time",
)
MAGAZINE_SELECTORS = SelectorConfig(
    item=".list_magazine_article li, .article_item, article",
    title=".tit_article, .title, h3",
    link="a",
    thumbnail="img",
    author=".author, .writer",
    date=".date, time",
)
GENERIC_SELECTORS = SelectorConfig(
    item="article, .wrap_article, .card_article, li.list_item",
    title=".tit_article, .title, h2, h3",
    link='a[href*="/@"]',
    thumbnail="img",
    author=".name_author, .author",
    date=".date, time, .publish_time",
)


def extract_author_id(url: str) -> Optional[str]:
    match = _AUTHOR_ID.search(url)
    return match.group(1) if match else None


def extract_magazine_id(url: str) -> Optional[str]:
    match = _MAGAZINE_ID.search(url)
    return match.group(1) if match else None


class KakaoBrunchStrategy(BaseCrawlStrategy):
    """Crawls Brunch authors, magazines and listing pages."""

    crawler_type = CrawlerType.PLATFORM_KAKAO

    link_processing = LinkProcessing(base_url=BRUNCH_HOST)

    @property
    def default_within_days(self) -> int:
        return settings.kakao_within_days

    async def list_items(self, source: Source) -> List[RawContentItem]:
        url = source.effective_url
        author_id = extract_author_id(url)
        magazine_id = extract_magazine_id(url)

        if author_id:
            items = await self._crawl_author(author_id)
        elif magazine_id:
            items = await self._crawl_page(
                f"{BRUNCH_HOST}/magazine/{magazine_id}", MAGAZINE_SELECTORS
            )
        else:
            self.logger.info(f"No author or magazine in {url}, parsing as a listing")
            items = await self._crawl_page(url, GENERIC_SELECTORS)

        result = self.finalize_items(items, source)
        self.logger.info(f"Found {len(result)} items for {source.name}")
        return result

    async def _crawl_author(self, author_id: str) -> List[RawContentItem]:
        feed_url = f"{BRUNCH_HOST}/rss/@@{author_id}"
        try:
            feed_text = await fetch_feed(self.fetcher, feed_url)
            items = items_from_feed(feedparser.parse(feed_text), self.link_processing)
        except CrawlerError as e:
            self.logger.warning(f"Brunch feed unavailable: {e}")
            items = []
        if items:
            return items

        items = await self._crawl_page(f"{BRUNCH_HOST}/@{author_id}", AUTHOR_SELECTORS)
        return [
            item if item.author else item.model_copy(update={"author": author_id})
            for item in items
        ]

    async def _crawl_page(
        self, url: str, selectors: SelectorConfig
    ) -> List[RawContentItem]:
        html = await self.fetcher.get_html(url)
        return parse_listing(
            html, url, selectors=selectors, link_processing=self.link_processing
        )

    async def fetch_content(
        self, url: str, hints: Optional[ContentSelectors] = None
    ) -> Optional[ContentResult]:
        try:
            html = await self.fetcher.get_html(url)
        except CrawlerError as e:
            self.logger.warning(f"Content fetch failed for {url}: {e}")
            return None

        if hints is None or not hints.content:
            hints = (hints or ContentSelectors()).model_copy(
                update={"content": BRUNCH_CONTENT_SELECTOR}
            )
        content = generate_preview(extract_content(html, url, hints))
        return ContentResult(content=content or None)
