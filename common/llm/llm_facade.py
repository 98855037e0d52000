# common/llm/llm_facade.py

from typing import Optional, Type, TypeVar

from pydantic import BaseModel

from .adapters.openai_adapter import OpenAIConfig
from .llm_factory import LLMFactory, StrategyType
from .llm_interfaces import LLMProvider, StructuredRequest
from ..logger import LoggerFactory, LoggerType, LogLevel

logger = LoggerFactory.get_logger(
    name="llm-facade", logger_type=LoggerType.STANDARD, level=LogLevel.INFO
)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class LLMFacade:
    """Entry point for asking a model for a typed answer."""

    def __init__(
        self,
        provider: LLMProvider = LLMProvider.OPENAI,
        strategy: StrategyType = StrategyType.SIMPLE,
        default_model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self.default_model = default_model
        self.llm = LLMFactory.get_llm(
            provider=provider,
            strategy=strategy,
            config=OpenAIConfig(
                api_key=api_key,
                base_url=base_url,
                timeout=timeout,
                default_model=default_model,
            ),
        )

    async def generate_structured(
        self,
        prompt: str,
        output_schema: Type[SchemaT],
        model: Optional[str] = None,
        temperature: float = 0.2,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> SchemaT:
        """
        Ask the model for an answer shaped like `output_schema`.

        Args:
            prompt: User prompt
            output_schema: Pydantic model the answer must validate against
            model: Model name (defaults to the facade's model)
            temperature: Sampling temperature
            system_prompt: Optional system instructions
            max_tokens: Optional completion limit

        Returns:
            A validated `output_schema` instance

        Raises:
            ValueError: If the answer never validated
        """
        request = StructuredRequest(
            prompt=prompt,
            output_schema=output_schema,
            model=model or self.default_model,
            temperature=temperature,
            system_prompt=system_prompt,
            max_tokens=max_tokens,
        )
        logger.debug(f"Requesting {request.schema_name} from {request.model}")
        return await self.llm.complete(request)
