"""Pydantic models for the memory system."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from chatmem.llm.client import Message, ToolCall


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageRecord(BaseModel):
    """Serialized form of one stored message.

    One record is one element of a conversation's list in the store.
    """

    role: str  # system, user, assistant, tool
    content: str = ""
    tool_calls: list[dict[str, Any]] | None = None
    tool_call_id: str | None = None
    name: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_message(cls, message: Message) -> "MessageRecord":
        """Build a record from a conversation message."""
        tool_calls = None
        if message.tool_calls:
            tool_calls = [
                {"id": tc.id, "name": tc.name, "arguments": tc.arguments}
                for tc in message.tool_calls
            ]

        return cls(
            role=message.role,
            content=message.content or "",
            tool_calls=tool_calls,
            tool_call_id=message.tool_call_id,
            name=message.name,
        )

    def to_message(self) -> Message:
        """Convert the record back into a conversation message."""
        tool_calls = None
        if self.tool_calls:
            tool_calls = [
                ToolCall(id=tc["id"], name=tc["name"], arguments=tc.get("arguments", {}))
                for tc in self.tool_calls
            ]

        return Message(
            role=self.role,
            content=self.content,
            tool_calls=tool_calls,
            tool_call_id=self.tool_call_id,
            name=self.name,
        )


def encode_message(message: Message) -> str:
    """Serialize a message to the JSON stored in a conversation list."""
    return MessageRecord.from_message(message).model_dump_json()


def decode_message(raw: str | bytes) -> Message:
    """Deserialize one stored list element.

    Raises:
        pydantic.ValidationError: If the element is not a valid record
    """
    return MessageRecord.model_validate_json(raw).to_message()


class PageDescriptor(BaseModel):
    """One page of a conversation's history, newest message first."""

    conversation_id: str
    page: int
    size: int
    total_messages: int
    total_pages: int
    has_next: bool
    has_previous: bool
    messages: list[Message] = Field(default_factory=list)


class HistoryView(BaseModel):
    """Windowed history read with count and expiry metadata."""

    conversation_id: str
    total_count: int
    returned_count: int
    remaining_ttl: int
    messages: list[Message] = Field(default_factory=list)


class ConversationInfo(BaseModel):
    """Existence, size and expiry of one conversation."""

    conversation_id: str
    exists: bool
    message_count: int
    remaining_ttl: int
    remaining_ttl_hours: float = 0.0

    @classmethod
    def build(
        cls, conversation_id: str, exists: bool, message_count: int, remaining_ttl: int
    ) -> "ConversationInfo":
        return cls(
            conversation_id=conversation_id,
            exists=exists,
            message_count=message_count,
            remaining_ttl=remaining_ttl,
            remaining_ttl_hours=remaining_ttl / 3600.0 if remaining_ttl > 0 else 0.0,
        )


class ConversationDetail(BaseModel):
    """Directory listing entry."""

    conversation_id: str
    message_count: int
    remaining_ttl: int
