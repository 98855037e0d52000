# adapters/static_strategy.py

"""
Static HTML technique using HTTPX + BeautifulSoup.
"""

from typing import List
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from ..core.exceptions import CrawlerError
from ..models.article import RawContentItem
from ..models.crawler import CrawlerType, PaginationType, Source
from ..utils.listing_parser import parse_listing
from .base_strategy import BaseCrawlStrategy


def with_query_param(url: str, name: str, value: str) -> str:
    parsed = urlparse(url)
    query = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True) if k != name]
    query.append((name, value))
    return urlunparse(parsed._replace(query=urlencode(query)))


class StaticStrategy(BaseCrawlStrategy):
    """
    Crawls server-rendered listing pages.

    Follows page-parameter pagination until a page comes back empty or the
    configured page limit is reached.
    """

    crawler_type = CrawlerType.STATIC

    async def list_items(self, source: Source) -> List[RawContentItem]:
        config = source.config
        url = source.effective_url
        self.logger.info(f"Crawling {source.name}: {url}")

        # The first page must load; a failure here fails the attempt
        items = await self._crawl_page(url, source)

        pagination = config.pagination
        if pagination and pagination.type == PaginationType.PAGE_PARAM:
            for page in range(2, pagination.max_pages + 1):
                await self.delay(config.crawl_config.delay)
                page_url = with_query_param(url, pagination.param, str(page))
                try:
                    page_items = await self._crawl_page(page_url, source)
                except CrawlerError as e:
                    self.logger.warning(f"Stopping pagination at page {page}: {e}")
                    break
                if not page_items:
                    break
                items.extend(page_items)

        result = self.finalize_items(items, source)
        self.logger.info(f"Found {len(result)} items for {source.name}")
        return result

    async def _crawl_page(self, url: str, source: Source) -> List[RawContentItem]:
        html = await self.fetcher.get_html(url)
        config = source.config
        return parse_listing(
            html,
            url,
            selectors=config.selectors,
            link_processing=config.link_processing,
            exclude_selectors=config.exclude_selectors,
        )
