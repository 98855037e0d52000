# services/__init__.py

"""
Resolution, detection and crawl orchestration services.
"""

from .api_detector import ApiDetector
from .classifier_service import LLMClassifierService, create_classifier
from .crawler_service import CrawlerService
from .strategy_resolver import StrategyResolver
from .url_optimizer import UrlOptimizer

__all__ = [
    "ApiDetector",
    "LLMClassifierService",
    "create_classifier",
    "CrawlerService",
    "StrategyResolver",
    "UrlOptimizer",
]
