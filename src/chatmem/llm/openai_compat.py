"""Streaming client for OpenAI-compatible inference servers."""

import json
from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI

from chatmem.llm.client import Message


class OpenAICompatibleClient:
    """Generation source backed by any ``/v1/chat/completions`` endpoint.

    Ollama, vLLM and hosted OpenAI-style APIs share the same wire format,
    so backend-specific subclasses only supply defaults.
    """

    def __init__(
        self,
        model: str,
        base_url: str,
        api_key: str = "none",
        timeout: int = 120,
        temperature: float = 0.7,
    ) -> None:
        """Initialise the client.

        Args:
            model: Model name served by the backend.
            base_url: OpenAI-compatible endpoint (must include ``/v1``).
            api_key: API key (many backends ignore this but the SDK requires one).
            timeout: Request timeout in seconds.
            temperature: Default sampling temperature.
        """
        self.model = model
        self.temperature = temperature
        self.client = AsyncOpenAI(base_url=base_url, api_key=api_key, timeout=timeout)

    def _convert_messages(self, messages: list[Message]) -> list[dict[str, Any]]:
        """Convert internal Message format to OpenAI format."""
        openai_messages: list[dict[str, Any]] = []

        for msg in messages:
            message_dict: dict[str, Any] = {
                "role": msg.role,
                "content": msg.content,
            }

            if msg.tool_calls:
                message_dict["tool_calls"] = [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {
                            "name": tc.name,
                            "arguments": json.dumps(tc.arguments),
                        },
                    }
                    for tc in msg.tool_calls
                ]

            if msg.tool_call_id:
                message_dict["tool_call_id"] = msg.tool_call_id
            if msg.name:
                message_dict["name"] = msg.name

            openai_messages.append(message_dict)

        return openai_messages

    def _params(self, messages: list[Message], temperature: float | None) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": self._convert_messages(messages),
            "temperature": temperature if temperature is not None else self.temperature,
        }

    async def stream_complete(
        self,
        messages: list[Message],
        temperature: float | None = None,
    ) -> AsyncIterator[str]:
        """Stream a completion.

        Args:
            messages: Conversation history.
            temperature: Sampling temperature override.

        Yields:
            Content chunks as strings.
        """
        params = self._params(messages, temperature)
        params["stream"] = True

        stream = await self.client.chat.completions.create(**params)

        async for chunk in stream:
            if chunk.choices and chunk.choices[0].delta.content:
                yield chunk.choices[0].delta.content
