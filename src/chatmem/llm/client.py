"""LLM client protocol and data types."""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, Protocol


@dataclass
class Message:
    """A message in the conversation."""

    role: str  # "system", "user", "assistant", "tool"
    content: str
    tool_calls: list["ToolCall"] | None = None
    tool_call_id: str | None = None  # For tool response messages
    name: str | None = None  # Tool name for tool response messages


@dataclass
class ToolCall:
    """A tool call requested by the LLM."""

    id: str
    name: str
    arguments: dict[str, Any]


class GenerationSource(Protocol):
    """Anything that streams response text fragments for a conversation.

    Fragments are plain strings. Depending on the backend they may be pure
    deltas, cumulative snapshots, or repeats; :mod:`chatmem.memory.aggregator`
    reduces them to one message.
    """

    def stream_complete(
        self,
        messages: list[Message],
        temperature: float | None = None,
    ) -> AsyncIterator[str]:
        """Stream a completion.

        Args:
            messages: Conversation history including the new user message
            temperature: Sampling temperature override

        Yields:
            Text fragments as they arrive
        """
        ...
