from .api import (
    APIConfig,
    ApiPagination,
    ApiPaginationType,
    CapturedRequest,
    DetectedApiConfig,
    ResponseMapping,
    UrlTransform,
)
from .article import ContentResult, CrawledArticle, RawContentItem
from .crawler import (
    AttemptRecord,
    AttemptStatus,
    ContentSelectors,
    CrawlConfig,
    CrawlerType,
    CrawlLog,
    CrawlOptions,
    CrawlResult,
    CrawlStatus,
    DetectionMetadata,
    DetectionMethod,
    EngineResult,
    LinkProcessing,
    PaginationConfig,
    PaginationType,
    QualityReport,
    SelectorConfig,
    Source,
    StrategyResolution,
    UrlFilters,
    dedupe_fallbacks,
)

__all__ = [
    "APIConfig",
    "ApiPagination",
    "ApiPaginationType",
    "AttemptRecord",
    "AttemptStatus",
    "CapturedRequest",
    "ContentResult",
    "ContentSelectors",
    "CrawlConfig",
    "CrawledArticle",
    "CrawlerType",
    "CrawlLog",
    "CrawlOptions",
    "CrawlResult",
    "CrawlStatus",
    "DetectedApiConfig",
    "DetectionMetadata",
    "DetectionMethod",
    "EngineResult",
    "LinkProcessing",
    "PaginationConfig",
    "PaginationType",
    "QualityReport",
    "RawContentItem",
    "ResponseMapping",
    "SelectorConfig",
    "Source",
    "StrategyResolution",
    "UrlFilters",
    "UrlTransform",
    "dedupe_fallbacks",
]
