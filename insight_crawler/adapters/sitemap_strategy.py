# adapters/sitemap_strategy.py

"""
Sitemap technique: read sitemap.xml, keep recent URLs, fetch each page's
metadata and body.
"""

import asyncio
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from ..core.config import settings
from ..core.constants import SITEMAP_BATCH_SIZE, SITEMAP_MAX_CHILDREN, SITEMAP_MAX_PAGES
from ..core.exceptions import CrawlerError
from ..models.article import RawContentItem
from ..models.crawler import ContentSelectors, CrawlerType, Source, UrlFilters
from ..utils.content_extractor import extract_content, extract_metadata, generate_preview
from ..utils.date_parser import is_within_days, parse_date
from .base_strategy import BaseCrawlStrategy

SITEMAP_ACCEPT = "application/xml,text/xml,*/*"


@dataclass
class SitemapEntry:
    loc: str
    lastmod: Optional[str] = None


def parse_sitemap(xml: str) -> tuple:
    """
    Split a sitemap document into child sitemap URLs and page entries.

    Returns:
        (child sitemap URLs, page entries)
    """
    soup = BeautifulSoup(xml, "xml")
    children = [
        loc.get_text(strip=True)
        for sitemap in soup.find_all("sitemap")
        for loc in sitemap.find_all("loc", limit=1)
    ]
    entries: List[SitemapEntry] = []
    for url in soup.find_all("url"):
        loc = url.find("loc")
        if loc is None:
            continue
        href = loc.get_text(strip=True)
        if not href.startswith("http"):
            continue
        lastmod = url.find("lastmod")
        entries.append(
            SitemapEntry(loc=href, lastmod=lastmod.get_text(strip=True) if lastmod else None)
        )
    return children, entries


def apply_url_filters(
    entries: List[SitemapEntry], filters: Optional[UrlFilters]
) -> List[SitemapEntry]:
    if filters is None:
        return entries
    result = []
    for entry in entries:
        if any(pattern in entry.loc for pattern in filters.exclude):
            continue
        if filters.include and not any(pattern in entry.loc for pattern in filters.include):
            continue
        result.append(entry)
    return result


def _lastmod_key(entry: SitemapEntry) -> float:
    parsed = parse_date(entry.lastmod) if entry.lastmod else None
    return parsed.timestamp() if parsed else float("-inf")


def resolve_sitemap_url(source: Source) -> str:
    """Explicit sitemap URL, discovered URL, crawl URL, then {origin}/sitemap.xml."""
    options = source.config.crawl_config
    if options.sitemap_url:
        return options.sitemap_url
    if options.rss_url:
        return options.rss_url
    if source.crawl_url:
        return source.crawl_url
    if "sitemap" in source.url and (source.url.endswith(".xml") or ".xml?" in source.url):
        return source.url
    parsed = urlparse(source.url)
    return f"{parsed.scheme}://{parsed.netloc}/sitemap.xml"


class SitemapStrategy(BaseCrawlStrategy):
    """Harvests articles listed in sitemap.xml."""

    crawler_type = CrawlerType.SITEMAP

    @property
    def default_within_days(self) -> int:
        return settings.sitemap_within_days

    async def list_items(self, source: Source) -> List[RawContentItem]:
        sitemap_url = resolve_sitemap_url(source)
        days = self.within_days(source)
        self.logger.info(f"Reading sitemap for {source.name}: {sitemap_url}")

        entries = await self._fetch_entries(sitemap_url)
        if not entries:
            self.logger.warning(f"No entries in sitemap {sitemap_url}")
            return []

        recent = [e for e in entries if not e.lastmod or is_within_days(e.lastmod, days)]
        # Newest first; entries without lastmod go last
        recent.sort(key=_lastmod_key, reverse=True)
        to_fetch = apply_url_filters(recent, source.config.url_filters)[:SITEMAP_MAX_PAGES]

        items: List[RawContentItem] = []
        hints = source.config.content_selectors
        for start in range(0, len(to_fetch), SITEMAP_BATCH_SIZE):
            batch = to_fetch[start : start + SITEMAP_BATCH_SIZE]
            results = await asyncio.gather(
                *(self._fetch_page_item(entry, hints) for entry in batch),
                return_exceptions=True,
            )
            for result in results:
                if isinstance(result, RawContentItem):
                    items.append(result)
                elif isinstance(result, Exception):
                    self.logger.warning(f"Sitemap page failed: {result}")

        result = self.finalize_items(items, source)
        self.logger.info(f"Found {len(result)} sitemap items for {source.name}")
        return result

    async def _fetch_entries(self, sitemap_url: str, depth: int = 0) -> List[SitemapEntry]:
        if depth > 1:
            return []
        response = await self.fetcher.get(sitemap_url, headers={"Accept": SITEMAP_ACCEPT})
        if not response.ok:
            self.logger.warning(f"Sitemap HTTP {response.status}: {sitemap_url}")
            return []

        children, entries = parse_sitemap(response.text)
        if children:
            collected: List[SitemapEntry] = []
            for child in children[:SITEMAP_MAX_CHILDREN]:
                try:
                    collected.extend(await self._fetch_entries(child, depth + 1))
                except CrawlerError as e:
                    self.logger.warning(f"Child sitemap failed {child}: {e}")
            return collected
        return entries

    async def _fetch_page_item(
        self, entry: SitemapEntry, hints: Optional[ContentSelectors]
    ) -> Optional[RawContentItem]:
        html = await self.fetcher.get_html(entry.loc)
        metadata = extract_metadata(html)
        title = (metadata["title"] or "").strip()
        if len(title) < 3:
            return None

        preview = generate_preview(extract_content(html, entry.loc, hints))
        return RawContentItem(
            title=title,
            link=entry.loc,
            thumbnail_url=metadata["image"],
            author=metadata["author"],
            published_at=entry.lastmod or metadata["published_time"],
            content=preview or None,
        )
