"""LLM Port - interface for tool-calling text completion providers."""

from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict


class ToolCall(BaseModel):
    """Tool invocation requested by the model."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str
    # Parsed JSON object, or the raw string when the model sent malformed JSON
    arguments: dict[str, Any] | str = {}


class LLMMessage(BaseModel):
    """Single message in a conversation. Never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    role: str  # "user" | "assistant" | "tool"
    content: str
    tool_calls: list[ToolCall] = []
    tool_call_id: str | None = None


class Completion(BaseModel):
    """One model response: text plus any tool calls."""

    text: str = ""
    tool_calls: list[ToolCall] = []
    model: str = ""


class LLMError(Exception):
    """LLM provider returned an error or an unusable response."""


class LLMPort(Protocol):
    """Interface for LLM providers (OpenAI, LM Studio, vLLM, ...)."""

    async def complete(
        self,
        system_prompt: str,
        messages: list[LLMMessage],
        tools: list[dict] | None = None,
        model: str | None = None,
        temperature: float = 0.1,
    ) -> Completion:
        """Produce one response for the conversation, optionally calling tools."""
        ...

    async def is_available(self) -> bool:
        """Check if the LLM provider is available."""
        ...
