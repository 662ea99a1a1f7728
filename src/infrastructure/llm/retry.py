"""Retrying LLM wrapper for transient transport failures."""

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.domain.ports.llm import Completion, LLMMessage, LLMPort


class RetryingLLM:
    """LLMPort decorator: retries timeouts and connection errors, not API errors."""

    def __init__(self, llm: LLMPort, attempts: int = 3) -> None:
        self._llm = llm
        self._attempts = attempts

    async def complete(
        self,
        system_prompt: str,
        messages: list[LLMMessage],
        tools: list[dict] | None = None,
        model: str | None = None,
        temperature: float = 0.1,
    ) -> Completion:
        @retry(
            stop=stop_after_attempt(self._attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type((httpx.TransportError, TimeoutError, ConnectionError)),
            reraise=True,
        )
        async def _complete() -> Completion:
            return await self._llm.complete(
                system_prompt=system_prompt,
                messages=messages,
                tools=tools,
                model=model,
                temperature=temperature,
            )

        return await _complete()

    async def is_available(self) -> bool:
        return await self._llm.is_available()

    async def close(self) -> None:
        close = getattr(self._llm, "close", None)
        if close is not None:
            await close()
