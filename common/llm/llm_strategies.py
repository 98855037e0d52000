# common/llm/llm_strategies.py

import asyncio

from pydantic import BaseModel

from .llm_interfaces import LLMInterface, LLMStrategyInterface, StructuredRequest
from ..logger import LoggerFactory, LoggerType, LogLevel

logger = LoggerFactory.get_logger(
    name="llm-strategies", logger_type=LoggerType.STANDARD, level=LogLevel.INFO
)


class SimpleStrategy(LLMStrategyInterface):
    """Single call, errors propagate."""

    name = "simple"

    async def execute(self, llm: LLMInterface, request: StructuredRequest) -> BaseModel:
        return await llm.complete(request)


class RetryStrategy(LLMStrategyInterface):
    """
    Repeats failed calls with exponential backoff.

    Malformed answers are retried as well, since a second sample often
    validates where the first did not.
    """

    name = "retry"

    def __init__(self, attempts: int = 3, delay: float = 1.0, backoff: float = 2.0):
        self.attempts = max(1, attempts)
        self.delay = delay
        self.backoff = backoff

    async def execute(self, llm: LLMInterface, request: StructuredRequest) -> BaseModel:
        wait = self.delay
        for attempt in range(1, self.attempts + 1):
            try:
                return await llm.complete(request)
            except Exception as e:
                if attempt == self.attempts:
                    logger.error(
                        f"{request.schema_name} failed after {attempt} attempts: {e}"
                    )
                    raise
                logger.warning(
                    f"{request.schema_name} attempt {attempt}/{self.attempts} failed, "
                    f"retrying in {wait:.1f}s: {e}"
                )
                await asyncio.sleep(wait)
                wait *= self.backoff
