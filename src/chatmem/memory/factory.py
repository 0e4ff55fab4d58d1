"""Build the configured conversation store."""

import logging

from redis.exceptions import RedisError

from chatmem.config.schema import ChatMemConfig
from chatmem.memory.inmemory_store import InMemoryConversationStore
from chatmem.memory.redis_store import RedisConversationStore
from chatmem.memory.store import ConversationStore

logger = logging.getLogger(__name__)


def create_conversation_store(config: ChatMemConfig) -> ConversationStore:
    """Create the conversation store selected by ``config.memory.backend``.

    When the Redis backend is selected but unreachable at construction time
    and ``fallback_to_memory`` is enabled, an in-memory store is returned
    instead. The choice is made once, here.

    Args:
        config: chatmem configuration

    Returns:
        A ready conversation store

    Raises:
        RedisError: If Redis is unreachable and fallback is disabled
    """
    memory = config.memory

    if memory.backend == "memory":
        logger.info("Using in-memory conversation store")
        return InMemoryConversationStore(
            key_prefix=memory.key_prefix, ttl_seconds=memory.ttl_seconds
        )

    store = RedisConversationStore.from_config(config.redis, memory)
    try:
        store.client.ping()
    except RedisError:
        if not memory.fallback_to_memory:
            raise
        logger.warning(
            "Redis at %s:%s unavailable, using in-memory conversation store (data is not persisted)",
            config.redis.host,
            config.redis.port,
        )
        return InMemoryConversationStore(
            key_prefix=memory.key_prefix, ttl_seconds=memory.ttl_seconds
        )

    return store
