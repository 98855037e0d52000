# common/llm/__init__.py

"""LLM module - schema-constrained generation over OpenAI-compatible endpoints"""

from .llm_interfaces import (
    LLMInterface,
    LLMProvider,
    StructuredRequest,
    UsageStats,
)
from .llm_factory import LLMFactory, StrategyType
from .llm_facade import LLMFacade

__all__ = [
    "LLMInterface",
    "LLMProvider",
    "StructuredRequest",
    "UsageStats",
    "LLMFactory",
    "StrategyType",
    "LLMFacade",
]
