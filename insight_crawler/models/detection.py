# models/detection.py

"""
Structured verdicts produced during source resolution.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .api import ResponseMapping, UrlTransform
from .crawler import CrawlerType


class TypeVerdict(BaseModel):
    """Classifier vote on which technique suits a page."""

    crawler_type: CrawlerType = Field(..., description="Suggested technique")
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    reasoning: str = ""


class SelectorVerdict(BaseModel):
    """Classifier proposal of listing selectors."""

    container: Optional[str] = None
    item: str = Field(..., description="Selector of one repeated entry")
    title: str
    link: str = "a"
    date: Optional[str] = None
    thumbnail: Optional[str] = None
    author: Optional[str] = None
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    reasoning: str = ""


class ApiVerdict(BaseModel):
    """Classifier choice among captured network requests."""

    found: bool = False
    endpoint: Optional[str] = None
    method: Optional[str] = "GET"
    headers: dict = Field(default_factory=dict)
    body: Optional[object] = None
    response_mapping: Optional[ResponseMapping] = None
    url_transform: Optional[UrlTransform] = None
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    reasoning: str = ""


class OptimizationMethod(str, Enum):
    RULE_DOMAIN = "rule-domain"
    RULE_PATH = "rule-path"
    HTML_DISCOVERY = "html-discovery"
    NO_CHANGE = "no-change"


class UrlOptimization(BaseModel):
    """A better crawl target found for a registered URL."""

    original_url: str
    optimized_url: str
    method: OptimizationMethod = OptimizationMethod.NO_CHANGE
    confidence: float = Field(1.0, ge=0.0, le=1.0)
    reason: str = ""

    @property
    def changed(self) -> bool:
        return self.optimized_url != self.original_url
