"""Conversation store interface and error types."""

from abc import ABC, abstractmethod

from chatmem.llm.client import Message

# Sentinels returned by remaining_ttl(), matching Redis TTL semantics.
MISSING_TTL = -2
NO_EXPIRY = -1

DEFAULT_KEY_PREFIX = "chat:memory:"
DEFAULT_TTL_SECONDS = 604800  # 7 days


class ChatMemError(Exception):
    """Base class for conversation memory errors."""


class StoreUnavailableError(ChatMemError):
    """A write to the conversation store failed.

    Raised for connectivity and serialization failures on write paths
    (append, clear). Read paths never raise it; they degrade to empty results.
    """

    def __init__(self, conversation_id: str, operation: str, cause: Exception | None = None):
        self.conversation_id = conversation_id
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(
            f"Conversation store unavailable during {operation} of {conversation_id!r}{detail}"
        )


class ConversationStore(ABC):
    """Durable, expiring, append-only message lists keyed by conversation id.

    Each conversation lives under ``key_prefix + conversation_id`` with a
    sliding time-to-live: every successful read or write resets it to
    ``ttl_seconds``. A conversation with no messages does not exist.

    Write operations raise :class:`StoreUnavailableError` on failure. Read
    and introspection operations log the failure and return an empty/default
    value instead.
    """

    def __init__(
        self,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ):
        if ttl_seconds < 1:
            msg = f"ttl_seconds must be positive, got {ttl_seconds}"
            raise ValueError(msg)
        self.key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds

    def key_for(self, conversation_id: str) -> str:
        """Return the store key holding a conversation."""
        return f"{self.key_prefix}{conversation_id}"

    @abstractmethod
    def append(self, conversation_id: str, messages: list[Message]) -> None:
        """Append messages in order and reset the conversation's TTL.

        Args:
            conversation_id: Conversation identifier
            messages: Messages to append, oldest first

        Raises:
            StoreUnavailableError: If the store cannot be written
        """

    @abstractmethod
    def read_all(self, conversation_id: str) -> list[Message]:
        """Return every message, oldest first, refreshing the TTL."""

    @abstractmethod
    def read_last_n(self, conversation_id: str, n: int) -> list[Message]:
        """Return the ``n`` most recent messages, oldest first within the window.

        ``n <= 0`` or ``n`` at least the conversation length behaves as
        :meth:`read_all`.
        """

    @abstractmethod
    def read_range(self, conversation_id: str, start: int, end: int) -> list[Message]:
        """Return messages ``start..end`` inclusive in storage order, refreshing the TTL."""

    @abstractmethod
    def clear(self, conversation_id: str) -> None:
        """Delete a conversation. Clearing an absent conversation is not an error.

        Raises:
            StoreUnavailableError: If the store cannot be written
        """

    @abstractmethod
    def exists(self, conversation_id: str) -> bool:
        """Return True if the conversation key is present."""

    @abstractmethod
    def remaining_ttl(self, conversation_id: str) -> int:
        """Return whole seconds until expiry, or a negative sentinel.

        :data:`MISSING_TTL` when the conversation is absent, :data:`NO_EXPIRY`
        when it has no expiry or the store could not be reached.
        """

    @abstractmethod
    def refresh_ttl(self, conversation_id: str) -> None:
        """Reset the expiry window without touching content. No-op if absent."""

    @abstractmethod
    def count(self, conversation_id: str) -> int:
        """Return the number of stored messages, 0 if absent."""

    @abstractmethod
    def list_conversation_ids(self, key_prefix: str | None = None) -> list[str]:
        """Return ids of live conversations.

        Args:
            key_prefix: Optional extra prefix the conversation id must start with
        """

    @abstractmethod
    def ping(self) -> bool:
        """Return True if the backing store is reachable."""
