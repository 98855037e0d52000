# core/exceptions.py

"""
Exception hierarchy for the crawling engine.
"""

from typing import Optional


class CrawlerError(Exception):
    """Base class for every crawler failure."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.url = url

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} ({self.url})"
        return self.message


class ConfigurationError(CrawlerError):
    """Unknown technique or malformed stored configuration."""


class FetchError(CrawlerError):
    """Network failure or non-2xx response."""

    def __init__(
        self, message: str, url: Optional[str] = None, status: Optional[int] = None
    ):
        super().__init__(message, url)
        self.status = status


class StrategyTimeoutError(CrawlerError):
    """A crawling technique exceeded its time budget."""


class BrowserError(CrawlerError):
    """Headless browser crashed or could not be launched."""


class ClassifierError(CrawlerError):
    """Classifier call failed or returned an unusable verdict."""
