"""Conversation memory for chatmem.

Stores multi-turn dialogue in expiring, append-only per-conversation lists
and provides the read-side helpers layered on top of them.

Components:

- :class:`ConversationStore` - Store interface (sliding TTL, append-only)
- :class:`RedisConversationStore` - Redis list per conversation
- :class:`InMemoryConversationStore` - Process-local fallback
- :class:`StreamAggregator` - Reduces streamed fragments to one message
- :class:`ConversationDirectory` - Enumeration and introspection
- :class:`HistoryService` - Windowed and paginated history reads
"""

from chatmem.memory.aggregator import (
    AggregatorState,
    StreamAggregator,
    aggregate_stream,
    merge_fragment,
    reduce_fragments,
)
from chatmem.memory.directory import ConversationDirectory, NotAuthorizedError
from chatmem.memory.factory import create_conversation_store
from chatmem.memory.history import HistoryService
from chatmem.memory.inmemory_store import InMemoryConversationStore
from chatmem.memory.pagination import (
    InvalidPageRequestError,
    compute_page_window,
    paginate,
    validate_page_request,
)
from chatmem.memory.redis_store import RedisConversationStore
from chatmem.memory.store import ChatMemError, ConversationStore, StoreUnavailableError

__all__ = [
    "AggregatorState",
    "ChatMemError",
    "ConversationDirectory",
    "ConversationStore",
    "HistoryService",
    "InMemoryConversationStore",
    "InvalidPageRequestError",
    "NotAuthorizedError",
    "RedisConversationStore",
    "StoreUnavailableError",
    "StreamAggregator",
    "aggregate_stream",
    "compute_page_window",
    "create_conversation_store",
    "merge_fragment",
    "paginate",
    "reduce_fragments",
    "validate_page_request",
]
