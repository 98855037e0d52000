# adapters/rss_strategy.py

"""
RSS/Atom technique using feedparser.
"""

import re
from datetime import datetime, timezone
from typing import Any, List, Optional

import feedparser

from ..core.exceptions import FetchError
from ..models.article import RawContentItem
from ..models.crawler import CrawlerType, LinkProcessing, Source
from ..utils.content_extractor import generate_preview, html_to_text
from ..utils.http_client import HttpFetcher
from ..utils.url_utils import normalize_url
from .base_strategy import BaseCrawlStrategy

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml, */*"

_FIRST_IMAGE = re.compile(r"""<img[^>]+src=["']([^"']+)["']""", re.IGNORECASE)


def _first_image(html: str) -> Optional[str]:
    match = _FIRST_IMAGE.search(html or "")
    if match and not match.group(1).startswith("data:"):
        return match.group(1)
    return None


def _entry_thumbnail(entry: Any, raw_content: str) -> Optional[str]:
    for media in entry.get("media_thumbnail") or []:
        if media.get("url"):
            return media["url"]
    for media in entry.get("media_content") or []:
        medium = media.get("medium") or media.get("type") or "image"
        if media.get("url") and medium.startswith("image"):
            return media["url"]
    for enclosure in entry.get("enclosures") or []:
        if enclosure.get("href") and (enclosure.get("type") or "").startswith("image/"):
            return enclosure["href"]
    return _first_image(raw_content)


def _entry_date(entry: Any) -> Optional[str]:
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            return datetime(*parsed[:6], tzinfo=timezone.utc).isoformat()
    return entry.get("published") or entry.get("updated")


def _entry_content(entry: Any) -> str:
    for block in entry.get("content") or []:
        if block.get("value"):
            return block["value"]
    return entry.get("summary") or ""


def items_from_feed(
    feed: Any, link_processing: Optional[LinkProcessing] = None
) -> List[RawContentItem]:
    """
    Convert a parsed feed into raw items.

    Thumbnails come from media thumbnails, media content, image enclosures
    and finally the first <img> of the entry body.
    """
    remove_params = link_processing.remove_params if link_processing else []

    items: List[RawContentItem] = []
    for entry in feed.entries:
        title = (entry.get("title") or "").strip()
        link = (entry.get("link") or "").strip()
        if not title or not link:
            continue

        raw_content = _entry_content(entry)
        content = generate_preview(html_to_text(raw_content)) if raw_content else None

        items.append(
            RawContentItem(
                title=title,
                link=normalize_url(link, remove_params),
                thumbnail_url=_entry_thumbnail(entry, raw_content),
                author=entry.get("author") or None,
                published_at=_entry_date(entry),
                content=content or None,
            )
        )
    return items


def parse_feed_entries(
    feed_text: str, link_processing: Optional[LinkProcessing] = None
) -> List[RawContentItem]:
    """Parse feed XML into raw items."""
    return items_from_feed(feedparser.parse(feed_text), link_processing)


async def fetch_feed(fetcher: HttpFetcher, url: str, timeout: float = 15.0) -> str:
    """Download a feed, raising FetchError on failure."""
    response = await fetcher.get(url, timeout=timeout, headers={"Accept": FEED_ACCEPT})
    if not response.ok:
        raise FetchError(f"HTTP {response.status}", url=url, status=response.status)
    return response.text


class RSSStrategy(BaseCrawlStrategy):
    """Reads RSS 2.0 and Atom feeds."""

    crawler_type = CrawlerType.RSS

    async def list_items(self, source: Source) -> List[RawContentItem]:
        feed_url = source.config.crawl_config.rss_url or source.effective_url
        self.logger.info(f"Fetching feed for {source.name}: {feed_url}")

        feed_text = await fetch_feed(self.fetcher, feed_url)
        parsed = feedparser.parse(feed_text)
        if parsed.bozo and not parsed.entries:
            self.logger.warning(
                f"Feed has parsing issues: {parsed.get('bozo_exception')}"
            )
            return []

        items = items_from_feed(parsed, source.config.link_processing)
        result = self.finalize_items(items, source)
        self.logger.info(f"Found {len(result)} feed items for {source.name}")
        return result
