"""History reads layered on the conversation store."""

import logging

from chatmem.memory.directory import ConversationDirectory
from chatmem.memory.pagination import compute_page_window, validate_page_request
from chatmem.memory.schema import ConversationInfo, HistoryView, PageDescriptor
from chatmem.memory.store import ConversationStore

logger = logging.getLogger(__name__)


class HistoryService:
    """Windowed, paginated and introspective access to conversation history."""

    def __init__(self, store: ConversationStore, directory: ConversationDirectory | None = None):
        """Initialize the service.

        Args:
            store: Conversation store
            directory: Directory over the same store (created if omitted)
        """
        self.store = store
        self.directory = directory or ConversationDirectory(store)

    def get_history(self, conversation_id: str, last_n: int = -1) -> HistoryView:
        """Return the whole history, or the last ``last_n`` messages.

        Args:
            conversation_id: Conversation identifier
            last_n: Number of most recent messages; negative means all

        Returns:
            Messages oldest first with count and TTL metadata
        """
        logger.info("Getting history for conversation %s, last_n=%d", conversation_id, last_n)
        if last_n < 0:
            messages = self.store.read_all(conversation_id)
        else:
            messages = self.store.read_last_n(conversation_id, last_n)

        return HistoryView(
            conversation_id=conversation_id,
            total_count=self.store.count(conversation_id),
            returned_count=len(messages),
            remaining_ttl=self.store.remaining_ttl(conversation_id),
            messages=messages,
        )

    def page(self, conversation_id: str, page: int, size: int) -> PageDescriptor:
        """Return one page of history, page 1 being the newest messages.

        Raises:
            InvalidPageRequestError: If ``page < 1`` or ``size`` outside [1, 100]
        """
        validate_page_request(page, size)
        logger.info(
            "Getting page %d (size %d) for conversation %s", page, size, conversation_id
        )

        total = self.store.count(conversation_id)
        window = compute_page_window(total, page, size)
        messages = []
        if not window.empty:
            messages = self.store.read_range(conversation_id, window.from_index, window.to_index)
            messages.reverse()
        elif total > 0:
            # out-of-range page on a live conversation still counts as a read
            self.store.refresh_ttl(conversation_id)

        return PageDescriptor(
            conversation_id=conversation_id,
            page=page,
            size=size,
            total_messages=total,
            total_pages=window.total_pages,
            has_next=window.has_next,
            has_previous=window.has_previous,
            messages=messages,
        )

    def clear(self, conversation_id: str) -> None:
        """Delete a conversation.

        Raises:
            StoreUnavailableError: If the store cannot be written
        """
        logger.info("Clearing history for conversation %s", conversation_id)
        self.store.clear(conversation_id)

    def refresh(self, conversation_id: str) -> int:
        """Reset a conversation's expiry and return its remaining TTL."""
        logger.info("Refreshing TTL for conversation %s", conversation_id)
        self.store.refresh_ttl(conversation_id)
        return self.store.remaining_ttl(conversation_id)

    def info(self, conversation_id: str) -> ConversationInfo:
        return self.directory.describe(conversation_id)
