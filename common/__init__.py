"""
Common Module

Shared infrastructure for the crawler: logging and LLM integration.

Usage:
    from common.logger import LoggerFactory
    from common.llm import LLMFacade
"""

__version__ = "0.1.0"

from .logger import LoggerFactory, LoggerType, LogLevel

__all__ = [
    "__version__",
    "LoggerFactory",
    "LoggerType",
    "LogLevel",
]
