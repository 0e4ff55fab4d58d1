"""Process-local conversation store used when Redis is unavailable."""

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from chatmem.llm.client import Message
from chatmem.memory.schema import decode_message, encode_message
from chatmem.memory.store import (
    DEFAULT_KEY_PREFIX,
    DEFAULT_TTL_SECONDS,
    MISSING_TTL,
    ConversationStore,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    records: list[str] = field(default_factory=list)
    expires_at: float = 0.0


class InMemoryConversationStore(ConversationStore):
    """Conversation store held in a dict, with the same sliding TTL as Redis.

    Data is lost when the process exits. Expired conversations are purged
    lazily whenever they are touched or enumerated.
    """

    def __init__(
        self,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the store.

        Args:
            key_prefix: Prefix prepended to conversation ids
            ttl_seconds: Sliding expiration window in seconds
            clock: Monotonic time source, injectable for tests
        """
        super().__init__(key_prefix=key_prefix, ttl_seconds=ttl_seconds)
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def _live(self, key: str) -> _Entry | None:
        """Return the entry for key if present and unexpired. Caller holds the lock."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry

    def _touch(self, entry: _Entry) -> None:
        entry.expires_at = self._clock() + self.ttl_seconds

    def append(self, conversation_id: str, messages: list[Message]) -> None:
        if not messages:
            return

        try:
            payload = [encode_message(message) for message in messages]
        except (ValueError, TypeError) as e:
            logger.error("Failed to serialize messages for conversation %s: %s", conversation_id, e)
            raise StoreUnavailableError(conversation_id, "append", e) from e

        key = self.key_for(conversation_id)
        with self._lock:
            entry = self._live(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.records.extend(payload)
            self._touch(entry)

        logger.debug("Added %d messages to conversation %s (memory)", len(messages), conversation_id)

    def _read(self, conversation_id: str, start: int, end: int | None) -> list[Message]:
        with self._lock:
            entry = self._live(self.key_for(conversation_id))
            if entry is None:
                return []
            self._touch(entry)
            records = entry.records[start:end]
        return [decode_message(record) for record in records]

    def read_all(self, conversation_id: str) -> list[Message]:
        return self._read(conversation_id, 0, None)

    def read_last_n(self, conversation_id: str, n: int) -> list[Message]:
        if n <= 0:
            return self.read_all(conversation_id)
        return self._read(conversation_id, -n, None)

    def read_range(self, conversation_id: str, start: int, end: int) -> list[Message]:
        if start < 0 or end < start:
            return []
        return self._read(conversation_id, start, end + 1)

    def clear(self, conversation_id: str) -> None:
        with self._lock:
            self._entries.pop(self.key_for(conversation_id), None)
        logger.info("Cleared conversation %s (memory)", conversation_id)

    def exists(self, conversation_id: str) -> bool:
        with self._lock:
            return self._live(self.key_for(conversation_id)) is not None

    def remaining_ttl(self, conversation_id: str) -> int:
        with self._lock:
            entry = self._live(self.key_for(conversation_id))
            if entry is None:
                return MISSING_TTL
            return math.ceil(entry.expires_at - self._clock())

    def refresh_ttl(self, conversation_id: str) -> None:
        with self._lock:
            entry = self._live(self.key_for(conversation_id))
            if entry is not None:
                self._touch(entry)

    def count(self, conversation_id: str) -> int:
        with self._lock:
            entry = self._live(self.key_for(conversation_id))
            return len(entry.records) if entry is not None else 0

    def list_conversation_ids(self, key_prefix: str | None = None) -> list[str]:
        prefix = self.key_prefix + (key_prefix or "")
        with self._lock:
            keys = [key for key in list(self._entries) if key.startswith(prefix)]
            live = [key for key in keys if self._live(key) is not None]
        return sorted(key[len(self.key_prefix) :] for key in live)

    def ping(self) -> bool:
        return True
