"""Tests for history reads layered on the store."""

import pytest

from chatmem.memory.history import HistoryService
from chatmem.memory.pagination import InvalidPageRequestError
from conftest import make_messages


@pytest.fixture(params=["redis", "memory"])
def history(request, redis_store, memory_store):
    store = redis_store if request.param == "redis" else memory_store
    return HistoryService(store)


def test_empty_conversation_page(history):
    result = history.page("c1", 1, 10)

    assert result.messages == []
    assert result.total_messages == 0
    assert result.total_pages == 0
    assert result.has_next is False
    assert result.has_previous is False


def test_twenty_five_message_walkthrough(history):
    history.store.append("c1", make_messages(25))

    first = history.page("c1", 1, 10)
    assert [m.content for m in first.messages] == [f"m{i}" for i in range(24, 14, -1)]
    assert first.total_pages == 3
    assert first.has_next is True
    assert first.has_previous is False

    last = history.page("c1", 3, 10)
    assert [m.content for m in last.messages] == ["m4", "m3", "m2", "m1", "m0"]
    assert last.has_next is False
    assert last.has_previous is True

    beyond = history.page("c1", 4, 10)
    assert beyond.messages == []
    assert beyond.total_pages == 3
    assert beyond.has_previous is True


def test_page_rejects_invalid_request(history):
    with pytest.raises(InvalidPageRequestError):
        history.page("c1", 0, 10)
    with pytest.raises(InvalidPageRequestError):
        history.page("c1", 1, 101)


def test_get_history_all(history):
    history.store.append("c1", make_messages(5))

    view = history.get_history("c1")

    assert view.total_count == 5
    assert view.returned_count == 5
    assert [m.content for m in view.messages] == ["m0", "m1", "m2", "m3", "m4"]
    assert view.remaining_ttl > 0


def test_get_history_last_n(history):
    history.store.append("c1", make_messages(5))

    view = history.get_history("c1", last_n=2)

    assert view.total_count == 5
    assert view.returned_count == 2
    assert [m.content for m in view.messages] == ["m3", "m4"]


def test_clear_and_info(history):
    history.store.append("c1", make_messages(2))
    assert history.info("c1").exists is True

    history.clear("c1")

    info = history.info("c1")
    assert info.exists is False
    assert info.message_count == 0


def test_refresh_returns_remaining_ttl(history):
    history.store.append("c1", make_messages(1))

    assert history.refresh("c1") > 3500
    assert history.refresh("ghost") == -2


def test_page_beyond_end_refreshes_ttl(memory_store, clock):
    """Reading past the last page still slides the expiry window."""
    history = HistoryService(memory_store)
    memory_store.append("c1", make_messages(5))
    clock.advance(1000)

    result = history.page("c1", 7, 10)

    assert result.messages == []
    assert memory_store.remaining_ttl("c1") == 3600
