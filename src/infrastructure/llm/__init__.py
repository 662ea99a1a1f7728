"""LLM adapters."""

from src.infrastructure.llm.openai_compatible import OpenAICompatibleAdapter
from src.infrastructure.llm.retry import RetryingLLM

__all__ = ["OpenAICompatibleAdapter", "RetryingLLM"]
