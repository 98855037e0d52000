# common/llm/adapters/openai_adapter.py

import json
import time
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI
from pydantic import BaseModel, Field, ValidationError

from ...logger import LoggerFactory, LoggerType, LogLevel
from ..llm_interfaces import (
    LLMAdapterInterface,
    LLMProvider,
    StructuredRequest,
    UsageStats,
)

logger = LoggerFactory.get_logger(
    name="openai-adapter", logger_type=LoggerType.STANDARD, level=LogLevel.INFO
)

SCHEMA_SUFFIX = "\n\nAnswer with a single JSON object matching this JSON schema:\n{schema}"


class OpenAIConfig(BaseModel):
    """Client settings for any OpenAI-compatible endpoint"""

    api_key: Optional[str] = None
    base_url: Optional[str] = Field(
        None, description="Override for self-hosted or proxy endpoints"
    )
    timeout: float = 30.0
    max_retries: int = Field(default=0, description="SDK-level retries per call")
    default_model: str = "gpt-4o-mini"


def build_messages(request: StructuredRequest) -> List[Dict[str, str]]:
    """Chat messages for a request, with the JSON schema appended to the prompt."""
    schema = json.dumps(request.output_schema.model_json_schema())
    messages = []
    if request.system_prompt:
        messages.append({"role": "system", "content": request.system_prompt})
    messages.append(
        {"role": "user", "content": request.prompt + SCHEMA_SUFFIX.format(schema=schema)}
    )
    return messages


class OpenAIAdapter(LLMAdapterInterface):
    """Chat-completions adapter using JSON mode."""

    def __init__(self, config: OpenAIConfig):
        self.config = config
        self.stats = UsageStats()
        client_kwargs: Dict[str, Any] = {
            "timeout": config.timeout,
            "max_retries": config.max_retries,
        }
        if config.api_key:
            client_kwargs["api_key"] = config.api_key
        if config.base_url:
            client_kwargs["base_url"] = config.base_url
        self.client = AsyncOpenAI(**client_kwargs)

        logger.info(
            f"OpenAI adapter ready (model={config.default_model}, "
            f"base_url={config.base_url or 'default'})"
        )

    def get_provider(self) -> LLMProvider:
        return LLMProvider.OPENAI

    async def complete(self, request: StructuredRequest) -> BaseModel:
        params: Dict[str, Any] = {
            "model": request.model or self.config.default_model,
            "messages": build_messages(request),
            "temperature": request.temperature,
            "response_format": {"type": "json_object"},
        }
        if request.max_tokens:
            params["max_tokens"] = request.max_tokens

        started = time.monotonic()
        try:
            response = await self.client.chat.completions.create(**params)
        except Exception as e:
            self.stats.record(False, elapsed=time.monotonic() - started)
            logger.error(f"OpenAI call for {request.schema_name} failed: {e}")
            raise

        elapsed = time.monotonic() - started
        tokens = response.usage.total_tokens if response.usage is not None else 0
        content = response.choices[0].message.content or ""

        try:
            parsed = request.output_schema.model_validate_json(content)
        except ValidationError as e:
            self.stats.record(False, tokens=tokens, elapsed=elapsed)
            logger.warning(
                f"Answer did not match {request.schema_name}: {e.error_count()} error(s)"
            )
            raise ValueError(f"Invalid {request.schema_name} answer: {e}") from e

        self.stats.record(True, tokens=tokens, elapsed=elapsed)
        logger.debug(
            f"{request.schema_name} answered in {elapsed:.2f}s using {tokens} tokens"
        )
        return parsed

    def get_stats(self) -> UsageStats:
        return self.stats
