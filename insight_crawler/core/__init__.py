# core/__init__.py

"""
Core configuration, settings and error types.
"""

from .config import settings, Settings
from .exceptions import (
    BrowserError,
    ClassifierError,
    ConfigurationError,
    CrawlerError,
    FetchError,
    StrategyTimeoutError,
)

__all__ = [
    "settings",
    "Settings",
    "BrowserError",
    "ClassifierError",
    "ConfigurationError",
    "CrawlerError",
    "FetchError",
    "StrategyTimeoutError",
]
