"""Enumeration and introspection of live conversations."""

import hmac
import logging
from collections.abc import Iterable

from chatmem.memory.schema import ConversationDetail, ConversationInfo
from chatmem.memory.store import ChatMemError, ConversationStore

logger = logging.getLogger(__name__)


class NotAuthorizedError(ChatMemError):
    """The caller may not enumerate every conversation."""


def admin_key_matches(provided: str | None, expected: str) -> bool:
    """Constant-time comparison of a supplied administrator key."""
    if not provided:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())


class ConversationDirectory:
    """Read-side view over the conversation store's keys."""

    def __init__(self, store: ConversationStore):
        self.store = store

    def list_conversation_ids(self, key_prefix: str | None = None) -> list[str]:
        """Return the ids of live conversations, sorted.

        Args:
            key_prefix: Optional prefix the conversation ids must start with
        """
        return self.store.list_conversation_ids(key_prefix)

    def describe(self, conversation_id: str) -> ConversationInfo:
        """Return existence, message count and remaining TTL for one conversation."""
        return ConversationInfo.build(
            conversation_id=conversation_id,
            exists=self.store.exists(conversation_id),
            message_count=self.store.count(conversation_id),
            remaining_ttl=self.store.remaining_ttl(conversation_id),
        )

    def batch_exists(self, conversation_ids: Iterable[str]) -> dict[str, bool]:
        """Check several conversations at once."""
        return {cid: self.store.exists(cid) for cid in conversation_ids}

    def list_details(
        self, authorized: bool, key_prefix: str | None = None
    ) -> list[ConversationDetail]:
        """List every live conversation with its size and expiry.

        Args:
            authorized: Result of the caller's credential check
            key_prefix: Optional prefix the conversation ids must start with

        Raises:
            NotAuthorizedError: If ``authorized`` is not True
        """
        if authorized is not True:
            logger.warning("Conversation enumeration denied")
            raise NotAuthorizedError("Administrator access is required to list conversations")

        details = [
            ConversationDetail(
                conversation_id=cid,
                message_count=self.store.count(cid),
                remaining_ttl=self.store.remaining_ttl(cid),
            )
            for cid in self.list_conversation_ids(key_prefix)
        ]
        logger.info("Listed %d conversations", len(details))
        return details
