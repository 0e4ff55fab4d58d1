"""Redis-backed conversation store."""

import logging
import re

import redis
from redis.exceptions import RedisError

from chatmem.config.schema import MemoryConfig, RedisConfig
from chatmem.llm.client import Message
from chatmem.memory.schema import decode_message, encode_message
from chatmem.memory.store import (
    DEFAULT_KEY_PREFIX,
    DEFAULT_TTL_SECONDS,
    NO_EXPIRY,
    ConversationStore,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def _escape_glob(text: str) -> str:
    """Escape Redis MATCH pattern metacharacters."""
    return _GLOB_SPECIAL.sub(r"\\\1", text)


def _as_text(value: str | bytes) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisConversationStore(ConversationStore):
    """Conversation store keeping each conversation in one Redis list.

    Appends are ``RPUSH`` + ``EXPIRE`` in a MULTI/EXEC pipeline so the write
    and the TTL reset land together. Reads are ``LRANGE`` followed by
    ``EXPIRE`` (sliding expiration).
    """

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ):
        """Initialize the store.

        Args:
            client: Redis client
            key_prefix: Prefix prepended to conversation ids
            ttl_seconds: Sliding expiration window in seconds
        """
        super().__init__(key_prefix=key_prefix, ttl_seconds=ttl_seconds)
        self.client = client
        logger.info(
            "RedisConversationStore initialized with key_prefix=%s ttl=%ss",
            key_prefix,
            ttl_seconds,
        )

    @classmethod
    def from_config(
        cls, redis_config: RedisConfig, memory_config: MemoryConfig
    ) -> "RedisConversationStore":
        """Create a store with a pooled client built from configuration."""
        client = redis.Redis(
            host=redis_config.host,
            port=redis_config.port,
            db=redis_config.db,
            password=redis_config.password or None,
            socket_timeout=redis_config.socket_timeout,
            socket_connect_timeout=redis_config.socket_connect_timeout,
            max_connections=redis_config.max_connections,
            decode_responses=True,
        )
        return cls(
            client,
            key_prefix=memory_config.key_prefix,
            ttl_seconds=memory_config.ttl_seconds,
        )

    def append(self, conversation_id: str, messages: list[Message]) -> None:
        if not messages:
            return

        key = self.key_for(conversation_id)
        try:
            payload = [encode_message(message) for message in messages]
        except (ValueError, TypeError) as e:
            logger.error("Failed to serialize messages for conversation %s: %s", conversation_id, e)
            raise StoreUnavailableError(conversation_id, "append", e) from e

        try:
            with self.client.pipeline(transaction=True) as pipe:
                pipe.rpush(key, *payload)
                pipe.expire(key, self.ttl_seconds)
                pipe.execute()
        except RedisError as e:
            logger.error("Failed to add messages to conversation %s: %s", conversation_id, e)
            raise StoreUnavailableError(conversation_id, "append", e) from e

        logger.debug("Added %d messages to conversation %s", len(messages), conversation_id)

    def _read(self, conversation_id: str, start: int, end: int) -> list[Message]:
        key = self.key_for(conversation_id)
        try:
            with self.client.pipeline(transaction=True) as pipe:
                pipe.lrange(key, start, end)
                pipe.expire(key, self.ttl_seconds)
                raw, _ = pipe.execute()
            return [decode_message(item) for item in raw]
        except (RedisError, ValueError):
            logger.exception("Failed to read messages from conversation %s", conversation_id)
            return []

    def read_all(self, conversation_id: str) -> list[Message]:
        messages = self._read(conversation_id, 0, -1)
        logger.debug("Retrieved all %d messages from conversation %s", len(messages), conversation_id)
        return messages

    def read_last_n(self, conversation_id: str, n: int) -> list[Message]:
        if n <= 0:
            return self.read_all(conversation_id)
        # LRANGE clamps -n to the list start when n exceeds the length
        messages = self._read(conversation_id, -n, -1)
        logger.debug(
            "Retrieved %d messages (last %d) from conversation %s",
            len(messages),
            n,
            conversation_id,
        )
        return messages

    def read_range(self, conversation_id: str, start: int, end: int) -> list[Message]:
        if start < 0 or end < start:
            return []
        return self._read(conversation_id, start, end)

    def clear(self, conversation_id: str) -> None:
        try:
            self.client.delete(self.key_for(conversation_id))
        except RedisError as e:
            logger.error("Failed to clear conversation %s: %s", conversation_id, e)
            raise StoreUnavailableError(conversation_id, "clear", e) from e
        logger.info("Cleared conversation %s", conversation_id)

    def exists(self, conversation_id: str) -> bool:
        try:
            return bool(self.client.exists(self.key_for(conversation_id)))
        except RedisError:
            logger.exception("Failed to check existence of conversation %s", conversation_id)
            return False

    def remaining_ttl(self, conversation_id: str) -> int:
        try:
            ttl = int(self.client.ttl(self.key_for(conversation_id)))
        except RedisError:
            logger.exception("Failed to get remaining TTL for conversation %s", conversation_id)
            return NO_EXPIRY
        return ttl

    def refresh_ttl(self, conversation_id: str) -> None:
        try:
            refreshed = self.client.expire(self.key_for(conversation_id), self.ttl_seconds)
        except RedisError:
            logger.exception("Failed to refresh TTL for conversation %s", conversation_id)
            return
        if refreshed:
            logger.debug("Refreshed TTL for conversation %s", conversation_id)

    def count(self, conversation_id: str) -> int:
        try:
            return int(self.client.llen(self.key_for(conversation_id)))
        except RedisError:
            logger.exception("Failed to get message count for conversation %s", conversation_id)
            return 0

    def list_conversation_ids(self, key_prefix: str | None = None) -> list[str]:
        prefix = self.key_prefix + (key_prefix or "")
        pattern = _escape_glob(prefix) + "*"
        try:
            ids = [
                _as_text(key)[len(self.key_prefix) :]
                for key in self.client.scan_iter(match=pattern, count=500)
            ]
        except RedisError:
            logger.exception("Failed to list conversation ids")
            return []
        logger.debug("Found %d conversation ids under %s", len(ids), prefix)
        return sorted(set(ids))

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except RedisError:
            return False
