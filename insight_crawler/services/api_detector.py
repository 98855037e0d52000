# services/api_detector.py

"""
Hidden JSON API detection.

Loads a page in the pooled browser, records every XHR/fetch response that
carries an array of objects, and asks the classifier which of them is the
article list and how to map its fields.
"""

import asyncio
import json
from typing import Dict, List, Optional

from playwright.async_api import Error as PlaywrightError, Request, Response

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..core.config import settings
from ..core.constants import (
    API_MAX_ITEMS,
    API_MIN_ITEMS,
    API_PREVIEW_CHARS,
    API_PROMPT_MAX_REQUESTS,
    API_SEARCH_DEPTH,
)
from ..core.exceptions import BrowserError
from ..interfaces.classifier import ClassifierService
from ..models.api import CapturedRequest, DetectedApiConfig
from ..models.detection import ApiVerdict
from ..utils.browser_pool import BrowserPool
from ..utils.json_path import find_object_array

CAPTURED_RESOURCE_TYPES = ("xhr", "fetch")


def inspect_json_body(text: str) -> Optional[CapturedRequest]:
    """
    Check whether a response body holds a plausible list of records.

    Returns a CapturedRequest with the array path and size filled in, without
    request details, or None.
    """
    try:
        data = json.loads(text)
    except ValueError:
        return None
    found = find_object_array(data, API_MIN_ITEMS, API_MAX_ITEMS, API_SEARCH_DEPTH)
    if not found:
        return None
    path, items = found.value
    return CapturedRequest(
        url="",
        response_preview=text[:API_PREVIEW_CHARS],
        item_count=len(items),
        items_path=path,
    )


def verdict_to_config(
    verdict: ApiVerdict, threshold: float
) -> Optional[DetectedApiConfig]:
    """Accept a classifier verdict only when it is complete and confident."""
    if not verdict.found or not verdict.endpoint or verdict.response_mapping is None:
        return None
    mapping = verdict.response_mapping
    if not mapping.title or not mapping.link:
        return None
    if verdict.confidence < threshold:
        return None
    method = "POST" if (verdict.method or "").upper() == "POST" else "GET"
    return DetectedApiConfig(
        endpoint=verdict.endpoint,
        method=method,
        headers=verdict.headers or {},
        body=verdict.body or None,
        response_mapping=mapping,
        url_transform=verdict.url_transform,
        confidence=verdict.confidence,
        reasoning=verdict.reasoning,
    )


class ApiDetector:
    """Finds article-list endpoints behind client-rendered pages."""

    def __init__(
        self,
        browser_pool: BrowserPool,
        classifier: Optional[ClassifierService],
        timeout: Optional[float] = None,
        confidence_threshold: Optional[float] = None,
    ):
        self.browser_pool = browser_pool
        self.classifier = classifier
        self.timeout = timeout or settings.api_detection_timeout
        self.confidence_threshold = (
            settings.api_confidence_threshold
            if confidence_threshold is None
            else confidence_threshold
        )
        self.logger = LoggerFactory.get_logger(
            name="api-detector",
            logger_type=LoggerType.STANDARD,
            level=LogLevel.INFO,
        )

    async def detect(self, url: str) -> Optional[DetectedApiConfig]:
        """
        Detect the article-list API of a page.

        Returns None when nothing qualifies, the classifier is unavailable or
        unsure, or the time budget runs out.
        """
        if self.classifier is None:
            return None
        try:
            captured = await asyncio.wait_for(self.capture(url), timeout=self.timeout)
        except asyncio.TimeoutError:
            self.logger.warning(f"API detection timed out after {self.timeout:.0f}s: {url}")
            return None
        except (BrowserError, PlaywrightError) as e:
            self.logger.warning(f"API detection failed for {url}: {e}")
            return None

        if not captured:
            self.logger.info(f"No JSON list responses captured on {url}")
            return None

        verdict = await self.classifier.detect_api(url, captured[:API_PROMPT_MAX_REQUESTS])
        if verdict is None:
            return None
        config = verdict_to_config(verdict, self.confidence_threshold)
        if config:
            self.logger.info(
                f"API detected for {url}: {config.method} {config.endpoint} "
                f"(confidence {config.confidence:.2f})"
            )
        return config

    async def capture(self, url: str) -> List[CapturedRequest]:
        """Load the page and collect JSON responses that hold record arrays."""
        captured: List[CapturedRequest] = []
        pending: List[asyncio.Task] = []
        requests: Dict[str, Request] = {}

        async def _inspect(response: Response) -> None:
            request = response.request
            if not response.ok:
                return
            if "json" not in (response.headers.get("content-type") or ""):
                return
            try:
                text = await response.text()
            except PlaywrightError as e:
                self.logger.debug(f"Could not read {response.url}: {e}")
                return
            candidate = inspect_json_body(text)
            if candidate is None:
                return
            captured.append(
                candidate.model_copy(
                    update={
                        "url": response.url,
                        "method": request.method,
                        "request_body": request.post_data,
                    }
                )
            )
            self.logger.debug(
                f"Captured {request.method} {response.url} "
                f"({candidate.item_count} items at '{candidate.items_path}')"
            )

        def _on_request(request: Request) -> None:
            if request.resource_type in CAPTURED_RESOURCE_TYPES:
                requests[request.url] = request

        def _on_response(response: Response) -> None:
            if response.url in requests:
                pending.append(asyncio.ensure_future(_inspect(response)))

        try:
            async with self.browser_pool.page() as page:
                page.on("request", _on_request)
                page.on("response", _on_response)
                await page.goto(url, wait_until="networkidle")
                results = await asyncio.gather(*pending, return_exceptions=True)
        finally:
            # Inspections still reading bodies when the time budget runs out
            for task in pending:
                if not task.done():
                    task.cancel()

        for outcome in results:
            if isinstance(outcome, Exception):
                self.logger.debug(f"Response inspection failed: {outcome}")
        return captured
