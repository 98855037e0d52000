# services/url_optimizer.py

"""
Finds a better crawl target than the URL an administrator registered.

Rules run in order: a fixed domain mapping, conventional content paths for
homepages, then links discovered in the homepage HTML. Every candidate
other than a domain mapping is validated with a HEAD probe.
"""

import asyncio
from typing import List, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..core.config import settings
from ..core.constants import (
    CONTENT_PATH_PROBES,
    DOMAIN_URL_MAPPINGS,
    FEED_LINK_CONFIDENCE,
    NAV_LINK_CONFIDENCE,
    NAV_LINK_KEYWORDS,
    PATH_PROBE_CONFIDENCE,
    ROOT_PATHS,
)
from ..core.exceptions import CrawlerError
from ..models.detection import OptimizationMethod, UrlOptimization
from ..utils.http_client import HttpFetcher
from ..utils.url_utils import origin, resolve_url, same_host
from .page_analyzer import discover_feed_link

DOMAIN_MAPPING_CONFIDENCE = 0.95
NAV_LINK_SELECTOR = "nav a, header a, .menu a, .navigation a"
NAV_LINK_MAX_PROBES = 6


def is_root_url(url: str) -> bool:
    return urlparse(url).path.lower() in ROOT_PATHS


class UrlOptimizer:
    """Rewrites homepages into the page that actually lists content."""

    def __init__(self, fetcher: HttpFetcher):
        self.fetcher = fetcher
        self.logger = LoggerFactory.get_logger(
            name="url-optimizer",
            logger_type=LoggerType.STANDARD,
            level=LogLevel.INFO,
        )

    async def optimize(self, url: str, html: Optional[str] = None) -> UrlOptimization:
        """
        Return the best crawl URL for a registered URL.

        Args:
            url: Registered URL
            html: Homepage HTML when the caller already fetched it

        Returns:
            UrlOptimization; method NO_CHANGE when nothing better was found
        """
        for rule in (self._by_domain, self._by_path):
            result = await rule(url)
            if result:
                self.logger.info(
                    f"URL optimized ({result.method.value}): {url} -> {result.optimized_url}"
                )
                return result

        result = await self._discover_from_html(url, html)
        if result:
            self.logger.info(
                f"URL optimized ({result.method.value}): {url} -> {result.optimized_url}"
            )
            return result

        return UrlOptimization(original_url=url, optimized_url=url)

    async def _by_domain(self, url: str) -> Optional[UrlOptimization]:
        parsed = urlparse(url)
        target_host = DOMAIN_URL_MAPPINGS.get(parsed.netloc.lower())
        if not target_host:
            return None
        return UrlOptimization(
            original_url=url,
            optimized_url=parsed._replace(netloc=target_host).geturl(),
            method=OptimizationMethod.RULE_DOMAIN,
            confidence=DOMAIN_MAPPING_CONFIDENCE,
            reason=f"Domain mapping to {target_host}",
        )

    async def _by_path(self, url: str) -> Optional[UrlOptimization]:
        if not is_root_url(url):
            return None

        base = origin(url)
        candidates = [f"{base}{path}" for path in CONTENT_PATH_PROBES]
        # Probes run together; the first path in priority order wins
        checks = await asyncio.gather(
            *(self.fetcher.exists(candidate, settings.head_timeout) for candidate in candidates)
        )
        for candidate, exists in zip(candidates, checks):
            if exists:
                return UrlOptimization(
                    original_url=url,
                    optimized_url=candidate,
                    method=OptimizationMethod.RULE_PATH,
                    confidence=PATH_PROBE_CONFIDENCE,
                    reason=f"Content path {urlparse(candidate).path}",
                )
        return None

    async def _discover_from_html(
        self, url: str, html: Optional[str]
    ) -> Optional[UrlOptimization]:
        if html is None:
            try:
                html = await self.fetcher.get_html(url, timeout=settings.resolver_fetch_timeout)
            except CrawlerError as e:
                self.logger.debug(f"Homepage fetch failed during optimization: {e}")
                return None

        feed_url = discover_feed_link(html, url)
        if feed_url:
            return UrlOptimization(
                original_url=url,
                optimized_url=feed_url,
                method=OptimizationMethod.HTML_DISCOVERY,
                confidence=FEED_LINK_CONFIDENCE,
                reason="Feed link declared in page head",
            )

        soup = BeautifulSoup(html, "html.parser")

        candidates = self._navigation_candidates(soup, url)[:NAV_LINK_MAX_PROBES]
        # Probed together; document order decides among the valid ones
        checks = await asyncio.gather(
            *(self.fetcher.exists(link, settings.head_timeout) for link, _ in candidates)
        )
        for (candidate, text), exists in zip(candidates, checks):
            if exists:
                return UrlOptimization(
                    original_url=url,
                    optimized_url=candidate,
                    method=OptimizationMethod.HTML_DISCOVERY,
                    confidence=NAV_LINK_CONFIDENCE,
                    reason=f'Navigation link "{text}"',
                )
        return None

    def _navigation_candidates(self, soup: BeautifulSoup, url: str) -> List[tuple]:
        candidates = []
        seen = set()
        for anchor in soup.select(NAV_LINK_SELECTOR):
            text = anchor.get_text(" ", strip=True).lower()
            if not any(keyword.lower() in text for keyword in NAV_LINK_KEYWORDS):
                continue
            link = resolve_url(anchor.get("href"), url)
            if not link or link in seen or link.rstrip("/") == url.rstrip("/"):
                continue
            if not same_host(link, url):
                continue
            seen.add(link)
            candidates.append((link, text))
        return candidates
