# models/crawler.py

"""
Data models for crawl configuration, strategy resolution and run results.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .api import APIConfig
from .article import CrawledArticle


class CrawlerType(str, Enum):
    """Crawling techniques."""

    STATIC = "static"
    SPA = "spa"
    RSS = "rss"
    SITEMAP = "sitemap"
    API = "api"
    PLATFORM_NAVER = "platform_naver"
    PLATFORM_KAKAO = "platform_kakao"
    NEWSLETTER = "newsletter"
    AUTO = "auto"


class DetectionMethod(str, Enum):
    """Which resolver stage produced a resolution."""

    DOMAIN_OVERRIDE = "domain-override"
    RSS_DISCOVERY = "rss-discovery"
    SITEMAP_DISCOVERY = "sitemap-discovery"
    CMS_DETECTION = "cms-detection"
    URL_PATTERN = "url-pattern"
    RULE_ANALYSIS = "rule-analysis"
    AI_TYPE_DETECTION = "ai-type-detection"
    AI_SELECTOR_DETECTION = "ai-selector-detection"
    SPA_DETECTION = "spa-detection"
    API_DETECTION = "api-detection"
    DEFAULT = "default"
    ERROR = "error"


class SelectorConfig(BaseModel):
    """CSS selectors locating article entries on a listing page."""

    container: Optional[str] = Field(None, description="Element wrapping the list")
    item: Optional[str] = Field(None, description="Repeated entry element")
    title: Optional[str] = None
    link: Optional[str] = "a"
    thumbnail: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None
    date_format: Optional[str] = None
    date_attribute: Optional[str] = Field(
        None, description="Attribute holding the date instead of the element text"
    )

    model_config = ConfigDict(frozen=True)


class ContentSelectors(BaseModel):
    """Hints for extracting the article body."""

    content: Optional[str] = None
    content_type: str = Field("text", pattern="^(text|html)$")
    remove_selectors: List[str] = Field(default_factory=list)
    use_readability: bool = True

    model_config = ConfigDict(frozen=True)


class LinkProcessing(BaseModel):
    """Link normalization rules."""

    base_url: Optional[str] = None
    remove_params: List[str] = Field(default_factory=list)
    link_template: Optional[str] = Field(
        None, description="Template for javascript: links, e.g. /view?id={0}"
    )

    model_config = ConfigDict(frozen=True)


class PaginationType(str, Enum):
    NONE = "none"
    PAGE_PARAM = "page_param"
    INFINITE_SCROLL = "infinite_scroll"
    LOAD_MORE = "load_more"


class PaginationConfig(BaseModel):
    """Listing page pagination."""

    type: PaginationType = PaginationType.NONE
    param: str = "page"
    max_pages: int = Field(3, ge=1, le=50)
    load_more_selector: Optional[str] = None
    scroll_delay: int = Field(1500, ge=0, description="Milliseconds between scrolls")

    model_config = ConfigDict(frozen=True)


class CrawlOptions(BaseModel):
    """Technique-specific crawl options."""

    wait_for_selector: Optional[str] = None
    wait_timeout: int = Field(10000, ge=0, description="Milliseconds")
    delay: int = Field(1000, ge=0, description="Milliseconds between page requests")
    rss_url: Optional[str] = None
    sitemap_url: Optional[str] = None
    user_agent: Optional[str] = None
    within_days: Optional[int] = Field(None, ge=1)

    model_config = ConfigDict(frozen=True)


class UrlFilters(BaseModel):
    """Substring filters applied to sitemap URLs."""

    include: List[str] = Field(default_factory=list)
    exclude: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class DetectionMetadata(BaseModel):
    """What the resolver decided, stored with the source."""

    method: DetectionMethod = DetectionMethod.DEFAULT
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    fallback_strategies: List[CrawlerType] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class CrawlConfig(BaseModel):
    """Structured configuration of one source."""

    selectors: Optional[SelectorConfig] = None
    exclude_selectors: List[str] = Field(default_factory=list)
    content_selectors: Optional[ContentSelectors] = None
    link_processing: Optional[LinkProcessing] = None
    pagination: Optional[PaginationConfig] = None
    crawl_config: CrawlOptions = Field(default_factory=CrawlOptions)
    category: Optional[str] = None
    api: Optional[APIConfig] = None
    url_filters: Optional[UrlFilters] = None
    detection: Optional[DetectionMetadata] = None

    model_config = ConfigDict(frozen=True)


class Source(BaseModel):
    """A registered crawl target."""

    id: str = Field(..., description="Source identity")
    name: str = Field(..., description="Display name")
    url: str = Field(..., description="Original URL")
    crawl_url: Optional[str] = Field(None, description="Optimized crawl URL")
    crawler_type: CrawlerType = CrawlerType.AUTO
    config: CrawlConfig = Field(default_factory=CrawlConfig)
    is_active: bool = True
    priority: int = Field(0, description="Higher runs first")
    last_crawled_at: Optional[datetime] = None

    @property
    def effective_url(self) -> str:
        return self.crawl_url or self.url


def dedupe_fallbacks(
    primary: CrawlerType, fallbacks: List[CrawlerType]
) -> List[CrawlerType]:
    """Drop repeats and the primary technique, keeping order."""
    seen = {primary}
    result: List[CrawlerType] = []
    for strategy in fallbacks:
        if strategy in seen or strategy == CrawlerType.AUTO:
            continue
        seen.add(strategy)
        result.append(strategy)
    return result


class StrategyResolution(BaseModel):
    """Output of the strategy resolver."""

    primary_strategy: CrawlerType
    fallback_strategies: List[CrawlerType] = Field(default_factory=list)
    rss_url: Optional[str] = None
    sitemap_url: Optional[str] = None
    selectors: Optional[SelectorConfig] = None
    exclude_selectors: List[str] = Field(default_factory=list)
    pagination: Optional[PaginationConfig] = None
    api_config: Optional[APIConfig] = None
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    detection_method: DetectionMethod = DetectionMethod.DEFAULT
    is_spa: bool = False
    optimized_url: Optional[str] = None

    @model_validator(mode="after")
    def _normalize_fallbacks(self) -> "StrategyResolution":
        self.fallback_strategies = dedupe_fallbacks(
            self.primary_strategy, self.fallback_strategies
        )
        return self

    def to_detection_metadata(self) -> DetectionMetadata:
        return DetectionMetadata(
            method=self.detection_method,
            confidence=self.confidence,
            fallback_strategies=self.fallback_strategies,
        )


class QualityReport(BaseModel):
    """Diagnostics produced by the quality gate."""

    passed: bool
    total: int = 0
    valid: int = 0
    garbage: int = 0
    garbage_ratio: float = 0.0
    unique_title_ratio: float = 0.0
    unique_url_ratio: float = 0.0
    reasons: List[str] = Field(default_factory=list)


class AttemptStatus(str, Enum):
    SUCCEEDED = "succeeded"
    REJECTED = "rejected"
    TIMEOUT = "timeout"
    FAILED = "failed"


class AttemptRecord(BaseModel):
    """One technique attempt inside a fallback run."""

    strategy: CrawlerType
    status: AttemptStatus
    items: int = 0
    duration: float = 0.0
    reason: Optional[str] = None


class CrawlStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class CrawlResult(BaseModel):
    """Summary of one source's run."""

    source_id: str
    source_name: str
    found: int = 0
    new: int = 0
    errors: List[str] = Field(default_factory=list)
    strategy_used: Optional[CrawlerType] = None
    attempts: List[AttemptRecord] = Field(default_factory=list)
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.strategy_used is not None and not self.errors


class CrawlLog(BaseModel):
    """Persisted record of one run for one source."""

    source_id: str
    status: CrawlStatus
    started_at: datetime
    completed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    items_found: int = 0
    items_new: int = 0
    error_message: Optional[str] = None


class EngineResult(BaseModel):
    """Outcome of one fallback run for one source."""

    articles: List[CrawledArticle] = Field(default_factory=list)
    found: int = Field(0, description="Items accepted by the quality gate")
    strategy_used: Optional[CrawlerType] = None
    attempts: List[AttemptRecord] = Field(default_factory=list)
    quality: Optional[QualityReport] = None
    errors: List[str] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.strategy_used is not None
