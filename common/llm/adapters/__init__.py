# common/llm/adapters/__init__.py

from .openai_adapter import OpenAIAdapter, OpenAIConfig

__all__ = ["OpenAIAdapter", "OpenAIConfig"]
