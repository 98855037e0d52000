# services/classifier_service.py

"""
Language-model classifier used for assisted detection.

Every call is time-boxed and returns None on any failure, so resolution
degrades to rule-based detection when the model is slow or unavailable.
"""

import asyncio
import json
from typing import List, Optional, Type, TypeVar

from bs4 import BeautifulSoup
from pydantic import BaseModel

from common.llm import LLMFacade, LLMProvider, StrategyType
from common.logger import LoggerFactory, LoggerType, LogLevel

from ..core.config import settings
from ..core.constants import (
    API_PROMPT_BODY_CHARS,
    API_PROMPT_PREVIEW_CHARS,
    CLASSIFIER_HTML_CHARS,
)
from ..interfaces.classifier import ClassifierService
from ..models.api import CapturedRequest
from ..models.crawler import CrawlerType
from ..models.detection import ApiVerdict, SelectorVerdict, TypeVerdict

VerdictT = TypeVar("VerdictT", bound=BaseModel)

SYSTEM_PROMPT = (
    "You analyse web pages that publish articles, reports and blog posts so "
    "that a crawler can collect them. Answer only with the requested JSON."
)

TYPE_PROMPT = """Decide which crawling technique fits the page below.

Techniques:
- static: article list is present in the server-rendered HTML
- spa: list is rendered by JavaScript and needs a headless browser
- rss: page is, or clearly points to, an RSS/Atom feed
- sitemap: articles are best discovered through sitemap.xml
- api: list is loaded from a JSON API
- platform_naver: Naver blog
- platform_kakao: Kakao Brunch
- newsletter: newsletter archive (Stibee, Substack, Mailchimp)

URL: {url}

HTML:
{html}

Return crawler_type, confidence between 0 and 1, and a short reasoning."""

SELECTOR_PROMPT = """Find CSS selectors for the article list on the page below.

Return:
- container: element wrapping the whole list (optional)
- item: selector matching one repeated article entry
- title: selector of the title inside an item
- link: selector of the anchor inside an item
- date, thumbnail, author: selectors inside an item when present
- confidence between 0 and 1 and a short reasoning

Ignore navigation menus, footers, banners and login links.

URL: {url}

HTML:
{html}"""

API_PROMPT = """The page {url} loaded the JSON requests below while rendering.
Decide whether one of them returns the page's article list.

{requests}

If one does, return:
- found: true
- endpoint, method, headers and body needed to repeat the request
- response_mapping: items (dotted path to the array, empty for the root),
  title, link, thumbnail, date and author fields of one item
- url_transform: link_template such as https://site/posts/{{id}} with
  link_fields when the item holds only an id or slug, thumbnail_prefix for
  relative image paths
- confidence between 0 and 1 and a short reasoning

Otherwise return found: false."""


def compact_html(html: str, limit: int = CLASSIFIER_HTML_CHARS) -> str:
    """Strip scripts, styles and SVG noise and truncate the markup."""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup(["script", "style", "svg", "noscript", "iframe"]):
        element.decompose()
    body = soup.body or soup
    return str(body)[:limit]


def format_captured_requests(requests: List[CapturedRequest]) -> str:
    blocks = []
    for index, request in enumerate(requests, start=1):
        lines = [
            f"[{index}] {request.method} {request.url}",
            f"items: {request.item_count} at '{request.items_path}'",
        ]
        if request.request_body:
            lines.append(f"body: {request.request_body[:API_PROMPT_BODY_CHARS]}")
        lines.append(f"response: {request.response_preview[:API_PROMPT_PREVIEW_CHARS]}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


class LLMClassifierService(ClassifierService):
    """Classifier backed by an OpenAI-compatible model."""

    def __init__(
        self,
        facade: Optional[LLMFacade] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.model = model or settings.classifier_model
        self.timeout = timeout or settings.classifier_timeout
        self.facade = facade or LLMFacade(
            provider=LLMProvider.OPENAI,
            strategy=StrategyType.RETRY,
            default_model=self.model,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=self.timeout,
        )
        self.logger = LoggerFactory.get_logger(
            name="classifier-service",
            logger_type=LoggerType.STANDARD,
            level=LogLevel.INFO,
        )

    async def classify_type(self, url: str, html: str) -> Optional[TypeVerdict]:
        prompt = TYPE_PROMPT.format(url=url, html=compact_html(html))
        verdict = await self._ask(prompt, TypeVerdict, "type classification")
        if verdict is None or verdict.crawler_type == CrawlerType.AUTO:
            return None
        return verdict

    async def detect_selectors(self, url: str, html: str) -> Optional[SelectorVerdict]:
        prompt = SELECTOR_PROMPT.format(url=url, html=compact_html(html))
        verdict = await self._ask(prompt, SelectorVerdict, "selector detection")
        if verdict is None or not verdict.item.strip() or not verdict.title.strip():
            return None
        return verdict

    async def detect_api(
        self, url: str, requests: List[CapturedRequest]
    ) -> Optional[ApiVerdict]:
        if not requests:
            return None
        prompt = API_PROMPT.format(url=url, requests=format_captured_requests(requests))
        verdict = await self._ask(prompt, ApiVerdict, "API detection")
        if verdict is None:
            return None
        if isinstance(verdict.body, str):
            # Models often return the body as a JSON string
            try:
                verdict = verdict.model_copy(update={"body": json.loads(verdict.body)})
            except ValueError:
                pass
        return verdict

    async def _ask(
        self, prompt: str, schema: Type[VerdictT], task: str
    ) -> Optional[VerdictT]:
        try:
            return await asyncio.wait_for(
                self.facade.generate_structured(
                    prompt=prompt,
                    output_schema=schema,
                    model=self.model,
                    temperature=0.1,
                    system_prompt=SYSTEM_PROMPT,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            self.logger.warning(f"Classifier {task} timed out after {self.timeout:.0f}s")
        except Exception as e:
            self.logger.warning(f"Classifier {task} failed: {e}")
        return None


def create_classifier() -> Optional[ClassifierService]:
    """Build the configured classifier, or None when assisted detection is off."""
    if not settings.classifier_enabled:
        return None
    return LLMClassifierService()
