# common/llm/llm_factory.py

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel

from .adapters.openai_adapter import OpenAIAdapter, OpenAIConfig
from .llm_interfaces import (
    LLMAdapterInterface,
    LLMInterface,
    LLMProvider,
    LLMStrategyInterface,
    StructuredRequest,
    UsageStats,
)
from .llm_strategies import RetryStrategy, SimpleStrategy
from ..logger import LoggerFactory, LoggerType, LogLevel

logger = LoggerFactory.get_logger(
    name="llm-factory", logger_type=LoggerType.STANDARD, level=LogLevel.INFO
)


class StrategyType(Enum):
    """Call policies an LLM instance can be built with"""

    SIMPLE = "simple"
    RETRY = "retry"


class StrategyWrappedLLM(LLMInterface):
    """Adapter plus the policy used to call it"""

    def __init__(self, adapter: LLMAdapterInterface, strategy: LLMStrategyInterface):
        self.adapter = adapter
        self.strategy = strategy

    async def complete(self, request: StructuredRequest) -> BaseModel:
        return await self.strategy.execute(self.adapter, request)

    def get_stats(self) -> UsageStats:
        return self.adapter.get_stats()


class LLMFactory:
    """
    Builds LLM instances and reuses them per provider, strategy and endpoint.

    Instances hold an HTTP client, so sharing them keeps one connection pool
    per endpoint.
    """

    _instances: Dict[str, LLMInterface] = {}

    @classmethod
    def get_llm(
        cls,
        provider: LLMProvider = LLMProvider.OPENAI,
        strategy: StrategyType = StrategyType.SIMPLE,
        config: Optional[OpenAIConfig] = None,
        retry_attempts: int = 3,
    ) -> LLMInterface:
        config = config or OpenAIConfig()
        key = (
            f"{provider.value}:{strategy.value}:"
            f"{config.base_url or 'default'}:{config.default_model}"
        )
        if key in cls._instances:
            return cls._instances[key]

        llm = StrategyWrappedLLM(
            cls._create_adapter(provider, config),
            cls._create_strategy(strategy, retry_attempts),
        )
        cls._instances[key] = llm
        logger.info(f"Created LLM instance {key}")
        return llm

    @staticmethod
    def _create_adapter(
        provider: LLMProvider, config: OpenAIConfig
    ) -> LLMAdapterInterface:
        if provider == LLMProvider.OPENAI:
            return OpenAIAdapter(config)
        raise ValueError(f"Unknown provider: {provider}")

    @staticmethod
    def _create_strategy(
        strategy: StrategyType, retry_attempts: int
    ) -> LLMStrategyInterface:
        if strategy == StrategyType.SIMPLE:
            return SimpleStrategy()
        if strategy == StrategyType.RETRY:
            return RetryStrategy(attempts=retry_attempts)
        raise ValueError(f"Unknown strategy type: {strategy}")

    @classmethod
    def clear_cache(cls) -> None:
        cls._instances.clear()
