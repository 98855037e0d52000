# services/strategy_resolver.py

"""
Strategy resolution pipeline.

Decides how a source should be crawled: optimize the URL, fetch it, then try
feed discovery, sitemap discovery, CMS fingerprints, URL patterns, rendering
detection, hidden API detection and selector detection in that order. The
first stage that decides wins. Resolution never raises; any failure degrades
to a URL-pattern guess.
"""

import asyncio
import re
from typing import List, Optional, Tuple

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..core.config import settings
from ..core.config_resolver import default_fallback_chain
from ..core.constants import (
    CMS_FEED_CONFIDENCE,
    FEED_PROBE_PATHS,
    FEED_SNIFF_BYTES,
    SITEMAP_PROBE_PATHS,
)
from ..core.exceptions import CrawlerError
from ..interfaces.classifier import ClassifierService
from ..models.crawler import (
    CrawlerType,
    DetectionMethod,
    SelectorConfig,
    StrategyResolution,
)
from ..models.detection import SelectorVerdict, TypeVerdict
from ..utils.browser_pool import BrowserPool
from ..utils.http_client import FetchResponse, HttpFetcher
from ..utils.url_utils import origin, resolve_url
from .api_detector import ApiDetector
from .page_analyzer import (
    SelectorCandidate,
    calculate_spa_score,
    detect_by_rules,
    detect_cms,
    discover_feed_link,
)
from .type_inference import TypeInference, infer_crawler_type
from .url_optimizer import UrlOptimizer

FEED_CONTENT_TYPES = ("xml", "rss", "atom")
_FEED_ROOT = re.compile(r"<rss|<feed|<channel", re.I)
_SITEMAP_ROOT = re.compile(r"<urlset|<sitemapindex", re.I)

SelectorChoice = Tuple[SelectorConfig, float, DetectionMethod]


def looks_like_feed(response: FetchResponse) -> bool:
    """Content type mentions xml/rss/atom and the head of the body has a feed root."""
    if not response.ok:
        return False
    if not any(marker in response.content_type for marker in FEED_CONTENT_TYPES):
        return False
    return bool(_FEED_ROOT.search(response.text[:FEED_SNIFF_BYTES]))


def looks_like_sitemap(response: FetchResponse) -> bool:
    if not response.ok:
        return False
    return bool(_SITEMAP_ROOT.search(response.text[:FEED_SNIFF_BYTES]))


def verdict_to_selectors(verdict: SelectorVerdict) -> SelectorConfig:
    return SelectorConfig(
        container=verdict.container,
        item=verdict.item,
        title=verdict.title,
        link=verdict.link or "a",
        date=verdict.date,
        thumbnail=verdict.thumbnail,
        author=verdict.author,
    )


class StrategyResolver:
    """
    Chooses the crawling technique, fallback order and configuration for a URL.

    The browser pool and classifier are optional; without them rendering
    retries, API detection and assisted detection are skipped.
    """

    def __init__(
        self,
        fetcher: HttpFetcher,
        browser_pool: Optional[BrowserPool] = None,
        classifier: Optional[ClassifierService] = None,
        optimizer: Optional[UrlOptimizer] = None,
        api_detector: Optional[ApiDetector] = None,
    ):
        self.fetcher = fetcher
        self.browser_pool = browser_pool
        self.classifier = classifier
        self.optimizer = optimizer or UrlOptimizer(fetcher)
        if api_detector is None and browser_pool is not None and classifier is not None:
            api_detector = ApiDetector(browser_pool, classifier)
        self.api_detector = api_detector
        self.logger = LoggerFactory.get_logger(
            name="strategy-resolver",
            logger_type=LoggerType.STANDARD,
            level=LogLevel.INFO,
        )

    async def resolve(self, url: str) -> StrategyResolution:
        """
        Resolve the crawling strategy for a URL.

        Args:
            url: Registered source URL

        Returns:
            StrategyResolution; never raises
        """
        self.logger.info(f"Resolving strategy for {url}")
        try:
            resolution = await self._resolve(url)
        except Exception as e:
            self.logger.error(f"Strategy resolution crashed for {url}: {e}")
            return self.url_pattern_resolution(url, DetectionMethod.ERROR)

        self.logger.info(
            f"Resolved {url}: {resolution.primary_strategy.value} "
            f"(confidence {resolution.confidence:.2f}, "
            f"method {resolution.detection_method.value}, "
            f"fallbacks {[t.value for t in resolution.fallback_strategies]})"
        )
        return resolution

    def url_pattern_resolution(
        self,
        url: str,
        method: DetectionMethod = DetectionMethod.URL_PATTERN,
        optimized_url: Optional[str] = None,
    ) -> StrategyResolution:
        """URL-shape guess with confidence floored at the minimum."""
        inference = infer_crawler_type(url)
        return StrategyResolution(
            primary_strategy=inference.crawler_type,
            fallback_strategies=default_fallback_chain(inference.crawler_type),
            confidence=max(inference.confidence, settings.minimum_confidence),
            detection_method=method,
            is_spa=inference.crawler_type == CrawlerType.SPA,
            optimized_url=optimized_url,
        )

    async def _resolve(self, url: str) -> StrategyResolution:
        original = await self._fetch(url)

        optimization = await self.optimizer.optimize(
            url, html=original.text if original and original.ok else ""
        )
        target = optimization.optimized_url
        optimized_url = target if optimization.changed else None

        response = original
        if optimization.changed:
            response = await self._fetch(target)
        if response is None or not response.ok:
            self.logger.warning(f"Could not fetch {target}, using URL pattern only")
            return self.url_pattern_resolution(target, optimized_url=optimized_url)

        html = response.text

        feed_url = await self._discover_feed(target, response)
        if feed_url:
            # HTML fallbacks need a page, so a feed target is kept only as rss_url
            page_url = None if looks_like_feed(response) else optimized_url
            return StrategyResolution(
                primary_strategy=CrawlerType.RSS,
                fallback_strategies=[CrawlerType.STATIC, CrawlerType.SPA],
                rss_url=feed_url,
                confidence=settings.rss_confidence,
                detection_method=DetectionMethod.RSS_DISCOVERY,
                optimized_url=page_url,
            )

        sitemap_url = await self._discover_sitemap(target)
        if sitemap_url:
            return StrategyResolution(
                primary_strategy=CrawlerType.SITEMAP,
                fallback_strategies=[CrawlerType.STATIC],
                sitemap_url=sitemap_url,
                confidence=settings.sitemap_confidence,
                detection_method=DetectionMethod.SITEMAP_DISCOVERY,
                optimized_url=optimized_url,
            )

        cms_resolution = await self._resolve_cms(target, html, optimized_url)
        if cms_resolution:
            return cms_resolution

        inference = infer_crawler_type(target)
        provisional: Optional[TypeInference] = None
        if inference.confidence >= settings.url_pattern_accept_threshold:
            provisional = inference
            self.logger.info(
                f"URL pattern suggests {inference.crawler_type.value} "
                f"({inference.confidence:.2f})"
            )

        spa_score = calculate_spa_score(html, target)
        spa_suspected = spa_score >= settings.spa_threshold
        self.logger.info(f"Rendering score for {target}: {spa_score:.2f}")

        if spa_suspected and self.api_detector is not None:
            detected = await self.api_detector.detect(target)
            if detected and detected.confidence >= settings.api_confidence_threshold:
                return StrategyResolution(
                    primary_strategy=CrawlerType.API,
                    fallback_strategies=[CrawlerType.SPA, CrawlerType.STATIC],
                    api_config=detected.to_api_config(),
                    confidence=detected.confidence,
                    detection_method=DetectionMethod.API_DETECTION,
                    is_spa=True,
                    optimized_url=optimized_url,
                )

        # A rendering verdict already decides the type
        rule_result, type_verdict, selector_verdict = await self._analyze(
            target, html, ask_type=provisional is None and not spa_suspected
        )
        selectors = self._best_selectors(rule_result, selector_verdict)

        if spa_suspected and (
            selectors is None or selectors[1] < settings.rule_trust_threshold
        ):
            rendered = await self._render(target)
            if rendered:
                rendered_rules, _, rendered_verdict = await self._analyze(
                    target, rendered, ask_type=False
                )
                selectors = self._best_selectors(
                    rendered_rules, rendered_verdict, current=selectors
                )

        return self._decide(
            target,
            inference,
            provisional,
            type_verdict,
            selectors,
            spa_score,
            spa_suspected,
            optimized_url,
        )

    def _decide(
        self,
        url: str,
        inference: TypeInference,
        provisional: Optional[TypeInference],
        type_verdict: Optional[TypeVerdict],
        selectors: Optional[SelectorChoice],
        spa_score: float,
        spa_suspected: bool,
        optimized_url: Optional[str],
    ) -> StrategyResolution:
        selector_config = selectors[0] if selectors else None
        selector_confidence = selectors[1] if selectors else 0.0

        if provisional is not None:
            technique, confidence, method = (
                provisional.crawler_type,
                provisional.confidence,
                DetectionMethod.URL_PATTERN,
            )
        elif spa_suspected:
            technique, confidence, method = (
                CrawlerType.SPA,
                spa_score,
                DetectionMethod.SPA_DETECTION,
            )
        elif type_verdict and type_verdict.confidence >= settings.ai_type_threshold:
            technique, confidence, method = (
                type_verdict.crawler_type,
                type_verdict.confidence,
                DetectionMethod.AI_TYPE_DETECTION,
            )
        elif selectors and selector_confidence >= settings.minimum_confidence:
            technique, confidence, method = (
                CrawlerType.STATIC,
                selector_confidence,
                selectors[2],
            )
        else:
            self.logger.info(f"No stage decided for {url}, using URL pattern default")
            return StrategyResolution(
                primary_strategy=inference.crawler_type,
                fallback_strategies=default_fallback_chain(inference.crawler_type),
                confidence=max(inference.confidence, settings.minimum_confidence),
                detection_method=DetectionMethod.DEFAULT,
                is_spa=spa_suspected or inference.crawler_type == CrawlerType.SPA,
                optimized_url=optimized_url,
            )

        return StrategyResolution(
            primary_strategy=technique,
            fallback_strategies=default_fallback_chain(technique),
            selectors=selector_config,
            confidence=confidence,
            detection_method=method,
            is_spa=spa_suspected or technique == CrawlerType.SPA,
            optimized_url=optimized_url,
        )

    async def _fetch(self, url: str) -> Optional[FetchResponse]:
        try:
            return await self.fetcher.get(url, timeout=settings.resolver_fetch_timeout)
        except CrawlerError as e:
            self.logger.warning(f"Fetch failed for {url}: {e}")
            return None

    async def _validate(self, url: str, timeout: float, sitemap: bool = False) -> bool:
        try:
            response = await self.fetcher.get(url, timeout=timeout)
        except CrawlerError as e:
            self.logger.debug(f"Probe failed for {url}: {e}")
            return False
        return looks_like_sitemap(response) if sitemap else looks_like_feed(response)

    async def _first_valid(
        self, candidates: List[str], timeout: float, sitemap: bool = False
    ) -> Optional[str]:
        """Validate candidates in parallel; the first in list order wins."""
        checks = await asyncio.gather(
            *(self._validate(candidate, timeout, sitemap) for candidate in candidates)
        )
        for candidate, valid in zip(candidates, checks):
            if valid:
                return candidate
        return None

    async def _discover_feed(self, url: str, response: FetchResponse) -> Optional[str]:
        if looks_like_feed(response):
            self.logger.info(f"{url} is itself a feed")
            return response.url or url

        declared = discover_feed_link(response.text, url)
        if declared:
            self.logger.info(f"Feed link declared: {declared}")
            if await self._validate(declared, settings.feed_probe_timeout):
                return declared
            self.logger.info(f"Declared feed {declared} did not validate")

        base = origin(url)
        candidates = [f"{base}{path}" for path in FEED_PROBE_PATHS]
        return await self._first_valid(candidates, settings.feed_probe_timeout)

    async def _discover_sitemap(self, url: str) -> Optional[str]:
        base = origin(url)
        candidates = [f"{base}{path}" for path in SITEMAP_PROBE_PATHS]
        return await self._first_valid(
            candidates, settings.sitemap_probe_timeout, sitemap=True
        )

    async def _resolve_cms(
        self, url: str, html: str, optimized_url: Optional[str]
    ) -> Optional[StrategyResolution]:
        signature = detect_cms(html)
        if signature is None:
            return None
        self.logger.info(f"CMS detected: {signature.name}")

        feed_url = resolve_url(signature.feed_path, origin(url))
        if feed_url and await self._validate(feed_url, settings.feed_probe_timeout):
            return StrategyResolution(
                primary_strategy=CrawlerType.RSS,
                fallback_strategies=[CrawlerType.STATIC],
                rss_url=feed_url,
                confidence=CMS_FEED_CONFIDENCE,
                detection_method=DetectionMethod.CMS_DETECTION,
                optimized_url=optimized_url,
            )
        return StrategyResolution(
            primary_strategy=CrawlerType.STATIC,
            fallback_strategies=[CrawlerType.SPA],
            confidence=settings.cms_confidence,
            detection_method=DetectionMethod.CMS_DETECTION,
            optimized_url=optimized_url,
        )

    async def _analyze(
        self, url: str, html: str, ask_type: bool
    ) -> Tuple[
        Optional[SelectorCandidate], Optional[TypeVerdict], Optional[SelectorVerdict]
    ]:
        """Rule-based and assisted detection, run concurrently."""

        async def _rules() -> Optional[SelectorCandidate]:
            return detect_by_rules(html)

        async def _nothing() -> None:
            return None

        if self.classifier is None:
            return await _rules(), None, None

        type_call = self.classifier.classify_type(url, html) if ask_type else _nothing()
        rule_result, type_verdict, selector_verdict = await asyncio.gather(
            _rules(),
            type_call,
            self.classifier.detect_selectors(url, html),
            return_exceptions=True,
        )
        return (
            self._unwrap(rule_result, "rule analysis"),
            self._unwrap(type_verdict, "type classification"),
            self._unwrap(selector_verdict, "selector detection"),
        )

    def _unwrap(self, outcome, stage: str):
        if isinstance(outcome, Exception):
            self.logger.warning(f"{stage} failed: {outcome}")
            return None
        return outcome

    def _best_selectors(
        self,
        rule_result: Optional[SelectorCandidate],
        verdict: Optional[SelectorVerdict],
        current: Optional[SelectorChoice] = None,
    ) -> Optional[SelectorChoice]:
        choices: List[SelectorChoice] = []
        if current:
            choices.append(current)
        if rule_result:
            choices.append(
                (rule_result.to_selector_config(), rule_result.score, DetectionMethod.RULE_ANALYSIS)
            )
        if verdict:
            choices.append(
                (
                    verdict_to_selectors(verdict),
                    verdict.confidence,
                    DetectionMethod.AI_SELECTOR_DETECTION,
                )
            )
        if not choices:
            return None
        best = max(choices, key=lambda choice: choice[1])
        self.logger.info(
            f"Selector candidate {best[0].item} ({best[2].value}, {best[1]:.2f})"
        )
        return best

    async def _render(self, url: str) -> Optional[str]:
        if self.browser_pool is None:
            return None
        try:
            return await self.browser_pool.render(url)
        except CrawlerError as e:
            self.logger.warning(f"Rendering {url} for selector detection failed: {e}")
            return None
