# adapters/spa_strategy.py

"""
Browser-rendered technique for JavaScript applications.

Pages are rendered through the shared BrowserPool. The rendered DOM is then
parsed with the same listing parser the static technique uses, so selector
semantics are identical between the two.
"""

from typing import List, Optional

from playwright.async_api import Error as PlaywrightError, Page

from ..core.exceptions import BrowserError
from ..models.article import ContentResult, RawContentItem
from ..models.crawler import (
    ContentSelectors,
    CrawlConfig,
    CrawlerType,
    PaginationType,
    Source,
)
from ..utils.browser_pool import BrowserPool
from ..utils.content_extractor import extract_content, generate_preview
from ..utils.http_client import HttpFetcher
from ..utils.listing_parser import parse_listing
from .base_strategy import BaseCrawlStrategy

DEFAULT_LOAD_MORE_SELECTOR = "button.load-more, .more-btn, [data-load-more]"

# Largest-looking content image, skipping avatars, icons and vector art
THUMBNAIL_SCRIPT = """
() => {
    for (const img of Array.from(document.querySelectorAll('img'))) {
        const src = img.currentSrc || img.src || '';
        if (
            img.naturalWidth >= 200 &&
            img.naturalHeight >= 150 &&
            !(img.alt || '').includes('profile') &&
            !src.includes('profile') &&
            !src.includes('icon') &&
            !src.includes('.svg')
        ) {
            return src;
        }
    }
    const og = document.querySelector('meta[property="og:image"]');
    const ogImage = og ? og.getAttribute('content') : null;
    if (ogImage && !ogImage.includes('profile')) {
        return ogImage;
    }
    return null;
}
"""


class SPAStrategy(BaseCrawlStrategy):
    """Crawls listings that only exist after client-side rendering."""

    crawler_type = CrawlerType.SPA

    def __init__(
        self,
        browser_pool: BrowserPool,
        fetcher: Optional[HttpFetcher] = None,
    ):
        super().__init__(fetcher)
        self.browser_pool = browser_pool

    async def list_items(self, source: Source) -> List[RawContentItem]:
        config = source.config
        options = config.crawl_config
        url = source.effective_url
        self.logger.info(f"Rendering {source.name}: {url}")

        async with self.browser_pool.page(user_agent=options.user_agent) as page:
            try:
                await page.goto(url, wait_until="networkidle")
                if options.wait_for_selector:
                    await page.wait_for_selector(
                        options.wait_for_selector, timeout=options.wait_timeout
                    )
                await self._paginate(page, config)
                html = await page.content()
                page_url = page.url
            except PlaywrightError as e:
                raise BrowserError(f"Render failed: {e}", url=url)

        items = parse_listing(
            html,
            page_url,
            selectors=config.selectors,
            link_processing=config.link_processing,
            exclude_selectors=config.exclude_selectors,
        )
        result = self.finalize_items(items, source)
        self.logger.info(f"Found {len(result)} items for {source.name}")
        return result

    async def _paginate(self, page: Page, config: CrawlConfig) -> None:
        pagination = config.pagination
        if not pagination:
            return
        if pagination.type == PaginationType.INFINITE_SCROLL:
            await self._infinite_scroll(page, pagination.max_pages, pagination.scroll_delay)
        elif pagination.type == PaginationType.LOAD_MORE:
            await self._load_more(
                page,
                pagination.load_more_selector or DEFAULT_LOAD_MORE_SELECTOR,
                pagination.max_pages,
                pagination.scroll_delay,
            )

    async def _infinite_scroll(self, page: Page, max_scrolls: int, delay: int) -> None:
        previous_height = 0
        for _ in range(max_scrolls):
            await page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
            await self.delay(delay)
            height = await page.evaluate("() => document.body.scrollHeight")
            if height == previous_height:
                break
            previous_height = height

    async def _load_more(
        self, page: Page, selector: str, max_clicks: int, delay: int
    ) -> None:
        for click in range(max_clicks):
            button = await page.query_selector(selector)
            if button is None or not await button.is_visible():
                break
            try:
                await button.click()
            except PlaywrightError as e:
                self.logger.debug(f"Load-more click {click + 1} failed: {e}")
                break
            await self.delay(delay)

    async def fetch_content(
        self, url: str, hints: Optional[ContentSelectors] = None
    ) -> Optional[ContentResult]:
        """Render an article page; returns the body preview and an in-page image."""
        try:
            # Images must load for natural sizes to be known
            async with self.browser_pool.page(block_resources=("font", "media")) as page:
                await page.goto(url, wait_until="networkidle")
                html = await page.content()
                thumbnail = await page.evaluate(THUMBNAIL_SCRIPT)
        except (PlaywrightError, BrowserError) as e:
            self.logger.warning(f"Content render failed for {url}: {e}")
            return None

        content = generate_preview(extract_content(html, url, hints))
        return ContentResult(content=content or None, thumbnail_url=thumbnail or None)
