# utils/browser_pool.py

"""
Pooled headless browser with acquire/release semantics.

One Chromium instance is launched lazily and shared by every rendered-page
crawl and API detection in the process. Pages are handed out through an
async context manager; a semaphore keeps concurrent page creation bounded.
A crashed browser is discarded and relaunched on the next acquire.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, Optional

from playwright.async_api import (
    Browser,
    Error as PlaywrightError,
    Page,
    Playwright,
    Route,
    async_playwright,
)

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..core.config import settings
from ..core.exceptions import BrowserError

logger = LoggerFactory.get_logger(
    name="browser-pool", logger_type=LoggerType.STANDARD, level=LogLevel.INFO
)

BLOCKED_RESOURCE_TYPES = ("image", "stylesheet", "font", "media")


class BrowserPool:
    """Lifecycle manager for the shared headless browser."""

    def __init__(
        self,
        headless: Optional[bool] = None,
        max_pages: int = 2,
        user_agent: Optional[str] = None,
    ):
        self.headless = settings.browser_headless if headless is None else headless
        self.user_agent = user_agent or settings.user_agent
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._launch_lock = asyncio.Lock()
        self._page_slots = asyncio.Semaphore(max_pages)

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def acquire(self) -> Browser:
        """Return the live browser, launching it on first use or after a crash."""
        async with self._launch_lock:
            if self.is_running:
                return self._browser

            if self._browser is not None:
                logger.warning("Browser disconnected, relaunching")
                await self._discard()

            try:
                if self._playwright is None:
                    self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=self.headless,
                    args=["--no-sandbox", "--disable-dev-shm-usage"],
                )
            except PlaywrightError as e:
                await self._discard()
                raise BrowserError(f"Failed to launch browser: {e}")

            logger.info("Headless browser launched")
            return self._browser

    @asynccontextmanager
    async def page(
        self,
        block_resources: Iterable[str] = BLOCKED_RESOURCE_TYPES,
        user_agent: Optional[str] = None,
    ) -> AsyncIterator[Page]:
        """
        Yield a fresh page in its own context and release it afterwards.

        Args:
            block_resources: Resource types aborted before they are fetched
            user_agent: Override for the context user agent
        """
        async with self._page_slots:
            browser = await self.acquire()
            try:
                context = await browser.new_context(
                    user_agent=user_agent or self.user_agent,
                    locale="ko-KR",
                )
            except PlaywrightError as e:
                await self._mark_broken()
                raise BrowserError(f"Failed to open browser context: {e}")

            blocked = tuple(block_resources)
            if blocked:

                async def _route(route: Route) -> None:
                    if route.request.resource_type in blocked:
                        await route.abort()
                    else:
                        await route.continue_()

                await context.route("**/*", _route)

            page = await context.new_page()
            page.set_default_navigation_timeout(
                settings.browser_navigation_timeout * 1000
            )
            try:
                yield page
            finally:
                try:
                    await context.close()
                except PlaywrightError as e:
                    logger.debug(f"Context close failed: {e}")
                    await self._mark_broken()

    async def render(
        self,
        url: str,
        wait_until: str = "networkidle",
        timeout: Optional[float] = None,
        wait_for_selector: Optional[str] = None,
    ) -> str:
        """Load a page and return its rendered HTML."""
        async with self.page() as page:
            try:
                await page.goto(
                    url,
                    wait_until=wait_until,
                    timeout=(timeout or settings.browser_navigation_timeout) * 1000,
                )
                if wait_for_selector:
                    await page.wait_for_selector(wait_for_selector, timeout=10000)
                return await page.content()
            except PlaywrightError as e:
                raise BrowserError(f"Render failed: {e}", url=url)

    async def _mark_broken(self) -> None:
        async with self._launch_lock:
            if self._browser is not None and not self._browser.is_connected():
                await self._discard()

    async def _discard(self) -> None:
        browser, self._browser = self._browser, None
        if browser is not None:
            try:
                await browser.close()
            except PlaywrightError as e:
                logger.debug(f"Ignoring close error on discarded browser: {e}")

    async def close(self) -> None:
        """Close the browser and stop Playwright. Safe to call twice."""
        async with self._launch_lock:
            await self._discard()
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
        logger.info("Browser pool closed")
