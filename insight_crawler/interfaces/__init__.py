from .classifier import ClassifierService
from .crawl_strategy import CrawlStrategy
from .source_repository import SourceRepository

__all__ = ["ClassifierService", "CrawlStrategy", "SourceRepository"]
