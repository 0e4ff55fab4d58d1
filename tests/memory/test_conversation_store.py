"""Behaviour shared by every conversation store backend."""

import pytest

from chatmem.llm.client import Message, ToolCall
from chatmem.memory.store import MISSING_TTL
from conftest import make_messages


@pytest.fixture(params=["redis", "memory"])
def store(request, redis_store, memory_store):
    """Run each test against both backends."""
    return redis_store if request.param == "redis" else memory_store


def test_append_and_read_all_preserves_order(store):
    """Messages come back in the order they were appended."""
    store.append("c1", make_messages(3))
    store.append("c1", make_messages(2, start=3))

    messages = store.read_all("c1")
    assert [m.content for m in messages] == ["m0", "m1", "m2", "m3", "m4"]
    assert [m.role for m in messages] == ["user", "assistant", "user", "assistant", "user"]


def test_append_empty_list_does_not_create_conversation(store):
    store.append("c1", [])

    assert store.exists("c1") is False
    assert store.count("c1") == 0


def test_absent_conversation_reads(store):
    """An unknown conversation reads as empty, never as an error."""
    assert store.read_all("nope") == []
    assert store.read_last_n("nope", 5) == []
    assert store.read_range("nope", 0, 4) == []
    assert store.count("nope") == 0
    assert store.exists("nope") is False
    assert store.remaining_ttl("nope") == MISSING_TTL


def test_read_last_n_window(store):
    """The window holds the newest n messages, oldest first."""
    store.append("c1", make_messages(10))

    messages = store.read_last_n("c1", 3)
    assert [m.content for m in messages] == ["m7", "m8", "m9"]


@pytest.mark.parametrize("n", [0, -1, 10, 50])
def test_read_last_n_falls_back_to_all(store, n):
    """Non-positive n, or n at least the length, returns everything."""
    store.append("c1", make_messages(10))

    assert len(store.read_last_n("c1", n)) == 10


def test_read_range_is_inclusive(store):
    store.append("c1", make_messages(10))

    assert [m.content for m in store.read_range("c1", 2, 4)] == ["m2", "m3", "m4"]
    assert store.read_range("c1", 5, 4) == []
    assert store.read_range("c1", -1, 4) == []


def test_tool_calls_survive_storage(store):
    """Structured metadata is stored alongside the text."""
    message = Message(
        role="assistant",
        content="",
        tool_calls=[ToolCall(id="call_1", name="search", arguments={"q": "redis"})],
    )
    store.append("c1", [message])

    (stored,) = store.read_all("c1")
    assert stored.tool_calls[0].name == "search"
    assert stored.tool_calls[0].arguments == {"q": "redis"}


def test_append_sets_ttl(store):
    store.append("c1", make_messages(1))

    ttl = store.remaining_ttl("c1")
    assert 0 < ttl <= 3600
    assert ttl >= 3590


def test_clear_is_idempotent(store):
    """Clearing twice, or clearing an unknown id, never errors."""
    store.append("c1", make_messages(2))

    store.clear("c1")
    store.clear("c1")
    store.clear("never-existed")

    assert store.exists("c1") is False
    assert store.read_all("c1") == []


def test_refresh_ttl_on_absent_conversation_does_not_create_it(store):
    store.refresh_ttl("ghost")

    assert store.exists("ghost") is False
    assert store.remaining_ttl("ghost") == MISSING_TTL


def test_list_conversation_ids(store):
    store.append("alice-1", make_messages(1))
    store.append("alice-2", make_messages(1))
    store.append("bob-1", make_messages(1))

    assert store.list_conversation_ids() == ["alice-1", "alice-2", "bob-1"]
    assert store.list_conversation_ids("alice") == ["alice-1", "alice-2"]
    assert store.list_conversation_ids("carol") == []


def test_conversations_are_independent(store):
    store.append("c1", make_messages(2))
    store.append("c2", make_messages(5))

    store.clear("c1")

    assert store.count("c1") == 0
    assert store.count("c2") == 5


def test_key_for_uses_prefix(store):
    assert store.key_for("c1") == "chat:memory:c1"


def test_ping(store):
    assert store.ping() is True
