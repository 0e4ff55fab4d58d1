"""Tests for the process-local conversation store."""

import pytest

from chatmem.memory.inmemory_store import InMemoryConversationStore
from chatmem.memory.store import MISSING_TTL
from conftest import make_messages


def test_conversation_expires(memory_store, clock):
    memory_store.append("c1", make_messages(3))

    clock.advance(3601)

    assert memory_store.exists("c1") is False
    assert memory_store.read_all("c1") == []
    assert memory_store.count("c1") == 0
    assert memory_store.remaining_ttl("c1") == MISSING_TTL
    assert memory_store.list_conversation_ids() == []


def test_remaining_ttl_counts_down(memory_store, clock):
    memory_store.append("c1", make_messages(1))

    clock.advance(100)

    assert memory_store.remaining_ttl("c1") == 3500


def test_read_slides_expiry(memory_store, clock):
    """Activity keeps a conversation alive past its original deadline."""
    memory_store.append("c1", make_messages(1))

    clock.advance(3000)
    memory_store.read_all("c1")
    clock.advance(3000)

    assert memory_store.exists("c1") is True
    assert memory_store.remaining_ttl("c1") == 600


def test_refresh_ttl(memory_store, clock):
    memory_store.append("c1", make_messages(1))
    clock.advance(1000)

    memory_store.refresh_ttl("c1")

    assert memory_store.remaining_ttl("c1") == 3600


def test_append_after_expiry_starts_fresh(memory_store, clock):
    memory_store.append("c1", make_messages(3))
    clock.advance(4000)

    memory_store.append("c1", make_messages(1, start=10))

    assert [m.content for m in memory_store.read_all("c1")] == ["m10"]


def test_introspection_does_not_refresh(memory_store, clock):
    memory_store.append("c1", make_messages(2))
    clock.advance(600)

    memory_store.count("c1")
    memory_store.exists("c1")

    assert memory_store.remaining_ttl("c1") == 3000


def test_rejects_non_positive_ttl():
    with pytest.raises(ValueError):
        InMemoryConversationStore(ttl_seconds=0)
