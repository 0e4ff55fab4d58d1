"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncIterator

import fakeredis
import pytest

from chatmem.config.schema import ChatMemConfig
from chatmem.llm.client import Message
from chatmem.memory.inmemory_store import InMemoryConversationStore
from chatmem.memory.redis_store import RedisConversationStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedSource:
    """Generation source that replays a fixed fragment script.

    If ``error`` is set it is raised after the scripted fragments.
    """

    def __init__(self, fragments: list[str], error: Exception | None = None):
        self.fragments = fragments
        self.error = error
        self.calls: list[list[Message]] = []

    async def stream_complete(
        self, messages: list[Message], temperature: float | None = None
    ) -> AsyncIterator[str]:
        self.calls.append(list(messages))
        for fragment in self.fragments:
            yield fragment
        if self.error is not None:
            raise self.error


@pytest.fixture
def default_config() -> ChatMemConfig:
    """Provide a default configuration for tests."""
    return ChatMemConfig()


@pytest.fixture
def memory_config() -> ChatMemConfig:
    """Configuration using the process-local store."""
    config = ChatMemConfig()
    config.memory.backend = "memory"
    config.memory.ttl_seconds = 3600
    return config


@pytest.fixture
def redis_client():
    """In-process fake Redis server."""
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def redis_store(redis_client) -> RedisConversationStore:
    return RedisConversationStore(redis_client, key_prefix="chat:memory:", ttl_seconds=3600)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(clock) -> InMemoryConversationStore:
    return InMemoryConversationStore(key_prefix="chat:memory:", ttl_seconds=3600, clock=clock)


def make_messages(count: int, start: int = 0) -> list[Message]:
    """Alternating user/assistant messages with content m<index>."""
    return [
        Message(role="user" if i % 2 == 0 else "assistant", content=f"m{i}")
        for i in range(start, start + count)
    ]
