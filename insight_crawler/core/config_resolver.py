# core/config_resolver.py

"""
Layered crawl configuration.

A run's configuration is built once from three layers, lowest first:
technique defaults, the configuration stored on the source (including what
the resolver wrote back), and an optional caller override. Nested models are
merged field by field; lists and scalars in a higher layer replace the lower
value.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ValidationError

from ..models.crawler import (
    CrawlConfig,
    CrawlerType,
    DetectionMetadata,
    dedupe_fallbacks,
)
from .config import settings
from .exceptions import ConfigurationError

ConfigLayer = Union[CrawlConfig, Dict[str, Any], None]

DEFAULT_FALLBACK_CHAINS: Dict[CrawlerType, List[CrawlerType]] = {
    CrawlerType.RSS: [CrawlerType.STATIC, CrawlerType.SPA],
    CrawlerType.SPA: [CrawlerType.STATIC],
    CrawlerType.STATIC: [CrawlerType.SPA],
    CrawlerType.PLATFORM_NAVER: [CrawlerType.STATIC, CrawlerType.SPA],
    CrawlerType.PLATFORM_KAKAO: [CrawlerType.STATIC, CrawlerType.SPA],
    CrawlerType.NEWSLETTER: [CrawlerType.STATIC, CrawlerType.SPA],
    CrawlerType.API: [CrawlerType.STATIC],
    CrawlerType.SITEMAP: [CrawlerType.STATIC],
}


def technique_defaults(technique: CrawlerType) -> Dict[str, Any]:
    """Baseline configuration for a technique before any stored values."""
    if technique == CrawlerType.SITEMAP:
        return {"crawl_config": {"within_days": settings.sitemap_within_days}}
    if technique == CrawlerType.PLATFORM_KAKAO:
        return {"crawl_config": {"within_days": settings.kakao_within_days}}
    if technique == CrawlerType.SPA:
        return {"crawl_config": {"delay": 1500}}
    return {}


def _as_dict(layer: ConfigLayer) -> Dict[str, Any]:
    if layer is None:
        return {}
    if isinstance(layer, BaseModel):
        return layer.model_dump(exclude_unset=True)
    if isinstance(layer, dict):
        return layer
    raise ConfigurationError(
        f"Unsupported configuration layer: {type(layer).__name__}"
    )


def deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    """Return base with update merged in; nested dicts merge, the rest replaces."""
    merged = dict(base)
    for key, value in update.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def resolve_crawl_config(
    technique: CrawlerType,
    stored: ConfigLayer = None,
    override: ConfigLayer = None,
) -> CrawlConfig:
    """
    Build the immutable configuration for one run.

    Args:
        technique: Technique the configuration is for
        stored: Configuration stored on the source
        override: Values supplied by the caller for this run only

    Returns:
        Frozen CrawlConfig

    Raises:
        ConfigurationError: If the merged values do not validate
    """
    merged = technique_defaults(technique)
    for layer in (stored, override):
        merged = deep_merge(merged, _as_dict(layer))

    try:
        return CrawlConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid crawl configuration: {e}")


def default_fallback_chain(primary: CrawlerType) -> List[CrawlerType]:
    return list(DEFAULT_FALLBACK_CHAINS.get(primary, [CrawlerType.SPA]))


def resolve_fallback_chain(
    primary: CrawlerType, detection: Optional[DetectionMetadata] = None
) -> List[CrawlerType]:
    """
    Fallback techniques for a run: the stored chain when the resolver wrote
    one, otherwise the technique default. Never contains the primary.
    """
    if detection and detection.fallback_strategies:
        chain = list(detection.fallback_strategies)
    else:
        chain = default_fallback_chain(primary)
    return dedupe_fallbacks(primary, chain)
