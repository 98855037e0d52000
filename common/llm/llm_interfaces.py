# common/llm/llm_interfaces.py

"""
Contracts for schema-constrained generation.

Callers describe the answer they want as a pydantic model; adapters turn a
`StructuredRequest` into a provider call and hand back a validated instance.
"""

import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, Type

from pydantic import BaseModel, ConfigDict, Field


class LLMProvider(Enum):
    """Supported LLM providers"""

    OPENAI = "openai"


class StructuredRequest(BaseModel):
    """One prompt plus the schema its answer must satisfy."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    prompt: str
    output_schema: Type[BaseModel]
    model: str
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    system_prompt: Optional[str] = None

    @property
    def schema_name(self) -> str:
        return self.output_schema.__name__


class UsageStats(BaseModel):
    """Running totals for one adapter."""

    calls: int = 0
    failures: int = 0
    tokens: int = 0
    busy_seconds: float = 0.0
    started_at: float = Field(default_factory=time.time)

    def record(self, ok: bool, tokens: int = 0, elapsed: float = 0.0) -> None:
        self.calls += 1
        if not ok:
            self.failures += 1
        self.tokens += tokens
        self.busy_seconds += elapsed

    @property
    def failure_rate(self) -> float:
        return self.failures / self.calls if self.calls else 0.0


class LLMInterface(ABC):
    """Anything that can answer a StructuredRequest."""

    @abstractmethod
    async def complete(self, request: StructuredRequest) -> BaseModel:
        """
        Run the request and return an instance of `request.output_schema`.

        Raises:
            ValueError: If the provider's answer does not validate
        """
        pass

    @abstractmethod
    def get_stats(self) -> UsageStats:
        pass


class LLMAdapterInterface(LLMInterface):
    """Provider-specific implementation"""

    @abstractmethod
    def get_provider(self) -> LLMProvider:
        pass


class LLMStrategyInterface(ABC):
    """Wraps an adapter call with a policy such as retrying."""

    name: str = "base"

    @abstractmethod
    async def execute(
        self, llm: LLMInterface, request: StructuredRequest
    ) -> BaseModel:
        pass
