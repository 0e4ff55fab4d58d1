"""Chat turn orchestration: history in, fragments out, one message persisted."""

import asyncio
import logging
import threading
from collections.abc import AsyncIterator
from dataclasses import dataclass

from chatmem.llm.client import GenerationSource, Message
from chatmem.memory.aggregator import AggregatorState, StreamAggregator, aggregate_stream
from chatmem.memory.store import ConversationStore, StoreUnavailableError

logger = logging.getLogger(__name__)


@dataclass
class TurnResult:
    """Outcome of one chat turn."""

    conversation_id: str | None
    text: str
    state: AggregatorState
    error: BaseException | None = None
    persist_error: StoreUnavailableError | None = None

    @property
    def ok(self) -> bool:
        return (
            self.state is AggregatorState.COMPLETE
            and self.error is None
            and self.persist_error is None
        )


class ChatTurn:
    """One in-flight turn of a conversation.

    Iterate :meth:`fragments` to drive generation. When the stream ends,
    fails or is cancelled, the user message and the reduced assistant text
    are appended to the store from a background task, so fragment delivery
    never waits on the store.
    """

    def __init__(
        self,
        runner: "ChatTurnRunner",
        conversation_id: str | None,
        user_message: Message,
        prompt: list[Message],
    ):
        self.conversation_id = conversation_id
        self.user_message = user_message
        self.prompt = prompt
        self.aggregator = StreamAggregator(on_finish=self._on_finish)
        self._runner = runner
        self._loop = asyncio.get_running_loop()
        self._loop_thread = threading.get_ident()
        self._persisted: asyncio.Future[StoreUnavailableError | None] = self._loop.create_future()
        self._started = False

    async def fragments(self) -> AsyncIterator[str]:
        """Yield response fragments as the generation source produces them."""
        if self._started:
            raise RuntimeError("A chat turn can only be streamed once")
        self._started = True

        source = self._runner.llm.stream_complete(self.prompt)
        relay = aggregate_stream(source, self.aggregator)
        try:
            async for fragment in relay:
                yield fragment
        finally:
            # closing the relay early fails the aggregator, flushing partial text now
            await relay.aclose()

    def _on_finish(self, text: str, error: BaseException | None) -> None:
        messages = [self.user_message]
        if text:
            messages.append(Message(role="assistant", content=text))

        if threading.get_ident() == self._loop_thread:
            self._schedule(messages)
        else:
            self._loop.call_soon_threadsafe(self._schedule, messages)

    def _schedule(self, messages: list[Message]) -> None:
        if not self.conversation_id:
            self._persisted.set_result(None)
            return

        task = self._runner.dispatch_persist(self.conversation_id, messages)
        task.add_done_callback(self._resolve)

    def _resolve(self, task: "asyncio.Task[StoreUnavailableError | None]") -> None:
        if self._persisted.done():
            return
        if task.cancelled():
            self._persisted.cancel()
        elif task.exception() is not None:
            self._persisted.set_exception(task.exception())
        else:
            self._persisted.set_result(task.result())

    async def wait(self) -> TurnResult:
        """Wait for persistence of a finished turn and return its result."""
        state = self.aggregator.state
        if state not in (AggregatorState.COMPLETE, AggregatorState.FAILED):
            raise RuntimeError(f"Chat turn has not finished (state: {state.value})")

        persist_error = await asyncio.shield(self._persisted)
        return TurnResult(
            conversation_id=self.conversation_id,
            text=self.aggregator.text,
            state=state,
            error=self.aggregator.error,
            persist_error=persist_error,
        )


class ChatTurnRunner:
    """Runs conversation turns against a store and a generation source."""

    def __init__(
        self,
        store: ConversationStore,
        llm: GenerationSource,
        system_prompt: str | None = None,
        history_window: int = 20,
    ):
        """Initialize the runner.

        Args:
            store: Conversation store for history and persistence
            llm: Source of streamed response fragments
            system_prompt: Prepended when the history has no system message
            history_window: Most recent messages sent to the model (0 = all)
        """
        self.store = store
        self.llm = llm
        self.system_prompt = system_prompt
        self.history_window = history_window
        self._pending: set[asyncio.Task[StoreUnavailableError | None]] = set()

    def _load_history(self, conversation_id: str) -> list[Message]:
        if self.history_window > 0:
            return self.store.read_last_n(conversation_id, self.history_window)
        return self.store.read_all(conversation_id)

    async def start(self, conversation_id: str | None, user_text: str) -> ChatTurn:
        """Load history and prepare a turn.

        A blank ``conversation_id`` makes the turn stateless: nothing is read
        or persisted.
        """
        conversation_id = (conversation_id or "").strip() or None

        history: list[Message] = []
        if conversation_id:
            history = await asyncio.to_thread(self._load_history, conversation_id)
            logger.info(
                "Loaded %d history messages for conversation %s", len(history), conversation_id
            )

        prompt: list[Message] = []
        if self.system_prompt and not any(m.role == "system" for m in history):
            prompt.append(Message(role="system", content=self.system_prompt))
        prompt.extend(history)

        user_message = Message(role="user", content=user_text)
        prompt.append(user_message)

        return ChatTurn(self, conversation_id, user_message, prompt)

    async def stream(self, conversation_id: str | None, user_text: str) -> AsyncIterator[str]:
        """Start a turn and yield its fragments."""
        turn = await self.start(conversation_id, user_text)
        async for fragment in turn.fragments():
            yield fragment

    async def run(self, conversation_id: str | None, user_text: str) -> TurnResult:
        """Run a turn to completion and wait for it to be persisted.

        Generation errors are reported on the result rather than raised.
        Cancellation propagates after the partial text has been scheduled
        for persistence.
        """
        turn = await self.start(conversation_id, user_text)
        try:
            async for _ in turn.fragments():
                pass
        except Exception as e:
            logger.error("Generation failed for conversation %s: %s", conversation_id, e)
        return await turn.wait()

    def dispatch_persist(
        self, conversation_id: str, messages: list[Message]
    ) -> "asyncio.Task[StoreUnavailableError | None]":
        """Append messages from a background task. Must run on the event loop."""
        task = asyncio.get_running_loop().create_task(self._persist(conversation_id, messages))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _persist(
        self, conversation_id: str, messages: list[Message]
    ) -> StoreUnavailableError | None:
        try:
            await asyncio.to_thread(self.store.append, conversation_id, messages)
        except StoreUnavailableError as e:
            logger.error("Failed to save turn for conversation %s: %s", conversation_id, e)
            return e
        except Exception as e:
            logger.exception("Unexpected error saving turn for conversation %s", conversation_id)
            return StoreUnavailableError(conversation_id, "append", e)
        logger.info("Saved %d messages to conversation %s", len(messages), conversation_id)
        return None

    async def drain(self) -> None:
        """Wait for every scheduled persistence task."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
