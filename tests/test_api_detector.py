# tests/test_api_detector.py

"""
Tests for hidden API detection: body inspection, verdict acceptance and the
detector flow with the browser capture replaced.
"""

import asyncio
import json
from contextlib import asynccontextmanager
from typing import List, Optional

from insight_crawler.core.exceptions import BrowserError
from insight_crawler.interfaces.classifier import ClassifierService
from insight_crawler.models.api import CapturedRequest, ResponseMapping, UrlTransform
from insight_crawler.models.detection import ApiVerdict
from insight_crawler.services.api_detector import (
    ApiDetector,
    inspect_json_body,
    verdict_to_config,
)

POSTS = {
    "meta": {"total": 3},
    "result": {
        "posts": [
            {"id": 1, "title": "First", "slug": "first"},
            {"id": 2, "title": "Second", "slug": "second"},
            {"id": 3, "title": "Third", "slug": "third"},
        ]
    },
}


def make_verdict(**kwargs) -> ApiVerdict:
    values = dict(
        found=True,
        endpoint="https://api.example.com/posts",
        method="post",
        body={"page": 1},
        response_mapping=ResponseMapping(items="result.posts", title="title", link="slug"),
        url_transform=UrlTransform(
            link_template="https://example.com/posts/{slug}", link_fields=["slug"]
        ),
        confidence=0.8,
    )
    values.update(kwargs)
    return ApiVerdict(**values)


class RecordingClassifier(ClassifierService):
    def __init__(self, verdict: Optional[ApiVerdict]):
        self.verdict = verdict
        self.received: List[CapturedRequest] = []

    async def classify_type(self, url, html):
        return None

    async def detect_selectors(self, url, html):
        return None

    async def detect_api(self, url, requests):
        self.received = list(requests)
        return self.verdict


class StubCaptureDetector(ApiDetector):
    """Detector whose browser capture returns canned requests."""

    def __init__(self, classifier, captured=None, error=None):
        super().__init__(browser_pool=None, classifier=classifier, timeout=5)
        self.captured = captured or []
        self.error = error

    async def capture(self, url: str) -> List[CapturedRequest]:
        if self.error is not None:
            raise self.error
        return self.captured


class TestInspectJsonBody:
    def test_finds_nested_record_array(self):
        captured = inspect_json_body(json.dumps(POSTS))

        assert captured is not None
        assert captured.items_path == "result.posts"
        assert captured.item_count == 3
        assert captured.response_preview.startswith("{")

    def test_rejects_non_json_and_scalar_lists(self):
        assert inspect_json_body("<html></html>") is None
        assert inspect_json_body(json.dumps({"tags": ["a", "b", "c"]})) is None
        assert inspect_json_body(json.dumps({"items": [{"id": 1}]})) is None


class TestVerdictToConfig:
    def test_accepts_complete_confident_verdict(self):
        config = verdict_to_config(make_verdict(), threshold=0.6)

        assert config is not None
        assert config.method == "POST"
        assert config.body == {"page": 1}
        api = config.to_api_config()
        assert api.endpoint == "https://api.example.com/posts"
        assert api.response_mapping.items == "result.posts"
        assert api.url_transform.link_template == "https://example.com/posts/{slug}"

    def test_unknown_method_becomes_get(self):
        config = verdict_to_config(make_verdict(method="PATCH"), threshold=0.6)
        assert config.method == "GET"

    def test_rejects_incomplete_or_unsure_verdicts(self):
        assert verdict_to_config(make_verdict(found=False), 0.6) is None
        assert verdict_to_config(make_verdict(endpoint=None), 0.6) is None
        assert verdict_to_config(make_verdict(response_mapping=None), 0.6) is None
        assert verdict_to_config(make_verdict(confidence=0.5), 0.6) is None
        assert (
            verdict_to_config(
                make_verdict(response_mapping=ResponseMapping(title="", link="slug")), 0.6
            )
            is None
        )


class TestApiDetector:
    async def test_detects_api_from_captured_requests(self):
        classifier = RecordingClassifier(make_verdict())
        captured = [
            CapturedRequest(
                url="https://api.example.com/posts",
                method="POST",
                request_body='{"page": 1}',
                response_preview=json.dumps(POSTS),
                item_count=3,
                items_path="result.posts",
            )
        ]

        config = await StubCaptureDetector(classifier, captured).detect("https://example.com")

        assert config is not None
        assert config.endpoint == "https://api.example.com/posts"
        assert classifier.received == captured

    async def test_nothing_captured_skips_classifier(self):
        classifier = RecordingClassifier(make_verdict())

        config = await StubCaptureDetector(classifier).detect("https://example.com")

        assert config is None
        assert classifier.received == []

    async def test_browser_failure_returns_none(self):
        classifier = RecordingClassifier(make_verdict())
        detector = StubCaptureDetector(classifier, error=BrowserError("launch failed"))

        assert await detector.detect("https://example.com") is None

    async def test_without_classifier(self):
        detector = StubCaptureDetector(None)
        assert await detector.detect("https://example.com") is None

    async def test_low_confidence_verdict_is_rejected(self):
        classifier = RecordingClassifier(make_verdict(confidence=0.3))
        captured = [CapturedRequest(url="https://api.example.com/posts", item_count=3)]

        assert await StubCaptureDetector(classifier, captured).detect("https://example.com") is None


class FakeRequest:
    def __init__(self, url: str):
        self.url = url
        self.method = "GET"
        self.post_data = None
        self.resource_type = "xhr"


class FakeResponse:
    """JSON response whose body never finishes downloading."""

    def __init__(self, request: FakeRequest):
        self.request = request
        self.url = request.url
        self.ok = True
        self.headers = {"content-type": "application/json"}
        self.cancelled = False

    async def text(self) -> str:
        try:
            await asyncio.sleep(60)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return "{}"


class HangingPage:
    """Page that emits one XHR response, then never reaches network idle."""

    def __init__(self):
        self.handlers = {}
        self.response: Optional[FakeResponse] = None

    def on(self, event, handler):
        self.handlers[event] = handler

    async def goto(self, url, wait_until=None):
        request = FakeRequest("https://api.example.com/posts")
        self.response = FakeResponse(request)
        self.handlers["request"](request)
        self.handlers["response"](self.response)
        await asyncio.sleep(60)


class FakeBrowserPool:
    def __init__(self, page):
        self._page = page

    @asynccontextmanager
    async def page(self):
        yield self._page


class TestCaptureTimeout:
    async def test_timeout_cancels_body_reads(self):
        page = HangingPage()
        detector = ApiDetector(
            browser_pool=FakeBrowserPool(page),
            classifier=RecordingClassifier(make_verdict()),
            timeout=0.05,
        )

        assert await detector.detect("https://example.com") is None
        await asyncio.sleep(0.01)

        assert page.response is not None
        assert page.response.cancelled
