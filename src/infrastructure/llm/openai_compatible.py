"""OpenAI-compatible adapter - OpenAI, LM Studio, vLLM, LocalAI."""

import json
import logging
from typing import Any

import httpx

from src.domain.ports.config import LLMConfig
from src.domain.ports.llm import Completion, LLMError, LLMMessage, ToolCall

logger = logging.getLogger(__name__)


class OpenAICompatibleAdapter:
    """Implements LLMPort via /v1/chat/completions with function tools."""

    def __init__(self, config: LLMConfig, client: httpx.AsyncClient | None = None) -> None:
        """Initialize with LLM config; client is injectable for tests."""
        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._headers = {"Content-Type": "application/json"}
        if config.api_key:
            self._headers["Authorization"] = f"Bearer {config.api_key}"
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create persistent async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout,
                headers=self._headers,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client (call during app shutdown)."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _chat_body(
        self,
        model: str,
        messages: list[dict[str, Any]],
        temperature: float,
        tools: list[dict] | None = None,
    ) -> dict:
        """Build request body; optional max_tokens from config."""
        body: dict = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "stream": False,
        }
        if self._config.max_tokens is not None:
            body["max_tokens"] = self._config.max_tokens
        if tools:
            body["tools"] = tools
        return body

    @staticmethod
    def _messages_to_openai(system_prompt: str, messages: list[LLMMessage]) -> list[dict[str, Any]]:
        """Convert conversation messages (tool results, assistant tool calls) to OpenAI format."""
        out: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
        for m in messages:
            if m.role == "tool":
                out.append({"role": "tool", "content": m.content, "tool_call_id": m.tool_call_id or ""})
            elif m.role == "assistant" and m.tool_calls:
                out.append(
                    {
                        "role": "assistant",
                        "content": m.content or "",
                        "tool_calls": [
                            {
                                "id": tc.id,
                                "type": "function",
                                "function": {
                                    "name": tc.name,
                                    "arguments": tc.arguments
                                    if isinstance(tc.arguments, str)
                                    else json.dumps(tc.arguments),
                                },
                            }
                            for tc in m.tool_calls
                        ],
                    }
                )
            else:
                out.append({"role": m.role, "content": m.content})
        return out

    @staticmethod
    def _parse_tool_calls(raw_tcs: list[dict]) -> list[ToolCall]:
        calls = []
        for tc in raw_tcs:
            fn = tc.get("function") or {}
            args = fn.get("arguments") or "{}"
            if isinstance(args, str):
                try:
                    parsed = json.loads(args) if args.strip() else {}
                except json.JSONDecodeError:
                    parsed = None
                if isinstance(parsed, dict):
                    args = parsed
                else:
                    # Kept raw; tool dispatch reports it back to the model
                    logger.debug("Malformed tool arguments for %s: %s", fn.get("name"), args[:100])
            elif not isinstance(args, dict):
                args = json.dumps(args)
            calls.append(ToolCall(id=tc.get("id") or "", name=fn.get("name", ""), arguments=args))
        return calls

    async def complete(
        self,
        system_prompt: str,
        messages: list[LLMMessage],
        tools: list[dict] | None = None,
        model: str | None = None,
        temperature: float = 0.1,
    ) -> Completion:
        """One chat completion. Raises LLMError on API errors or unusable responses."""
        model = model or self._config.model
        body = self._chat_body(
            model,
            self._messages_to_openai(system_prompt, messages),
            temperature,
            tools=tools,
        )
        client = self._get_client()
        resp = await client.post(f"{self._base_url}/chat/completions", json=body)
        if resp.status_code >= 400:
            logger.error("LLM API error %s: %s", resp.status_code, resp.text[:500])
            raise LLMError(f"LLM API error {resp.status_code}: {resp.text[:200]}")
        try:
            data = resp.json()
            msg = data["choices"][0]["message"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMError(f"Malformed LLM response: {e}") from e
        return Completion(
            text=msg.get("content") or "",
            tool_calls=self._parse_tool_calls(msg.get("tool_calls") or []),
            model=data.get("model") or model,
        )

    async def is_available(self) -> bool:
        """Check if the endpoint answers /models."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self._base_url}/models", headers=self._headers)
                return resp.status_code == 200
        except (httpx.ConnectTimeout, httpx.ConnectError, httpx.ReadTimeout, OSError) as e:
            logger.debug("LLM availability check failed (connection): %s", e)
            return False
        except httpx.HTTPError as e:
            logger.debug("LLM availability check failed (HTTP): %s", e)
            return False
