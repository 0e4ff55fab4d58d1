"""Reduce a stream of generated text fragments to one message.

Generation backends disagree on what a streamed fragment is. Some send pure
deltas, some send the whole text so far on every chunk, and retried
extraction paths can repeat text already seen. :func:`merge_fragment`
folds any of these into one accumulated string without duplication.
"""

import logging
import threading
from collections.abc import AsyncGenerator, AsyncIterator, Callable, Iterable
from enum import Enum

logger = logging.getLogger(__name__)

FinishCallback = Callable[[str, BaseException | None], None]


class AggregatorState(str, Enum):
    """Lifecycle of one streaming response."""

    EMPTY = "empty"
    ACCUMULATING = "accumulating"
    COMPLETE = "complete"
    FAILED = "failed"


_TERMINAL = (AggregatorState.COMPLETE, AggregatorState.FAILED)


def merge_fragment(accumulated: str, fragment: str) -> str:
    """Fold one fragment into the accumulated text.

    The containment checks must run before the concatenation fallback,
    otherwise cumulative snapshots would be appended to themselves.
    """
    if not accumulated:
        return fragment
    if fragment == accumulated:
        return accumulated
    if fragment.startswith(accumulated):
        # cumulative snapshot
        return fragment
    if accumulated.startswith(fragment):
        # stale partial
        return accumulated
    if fragment in accumulated:
        # overlapping repeat
        return accumulated
    return accumulated + fragment


def reduce_fragments(fragments: Iterable[str]) -> str:
    """Reduce a complete fragment sequence to its final text."""
    text = ""
    for fragment in fragments:
        if fragment:
            text = merge_fragment(text, fragment)
    return text


class StreamAggregator:
    """Thread-safe accumulator for one in-flight response.

    Fragment delivery and the completion/failure handlers may run on
    different execution contexts, so every transition takes the lock.
    The first terminal transition wins and fires ``on_finish`` exactly once;
    later fragments and transitions are ignored.
    """

    def __init__(self, on_finish: FinishCallback | None = None):
        """Initialize an empty aggregator.

        Args:
            on_finish: Called once with ``(text, error)`` when the stream
                completes (error is None) or fails
        """
        self._text = ""
        self._state = AggregatorState.EMPTY
        self._error: BaseException | None = None
        self._on_finish = on_finish
        self._lock = threading.Lock()

    @property
    def text(self) -> str:
        with self._lock:
            return self._text

    @property
    def state(self) -> AggregatorState:
        with self._lock:
            return self._state

    @property
    def error(self) -> BaseException | None:
        with self._lock:
            return self._error

    def feed(self, fragment: str) -> bool:
        """Merge a fragment into the accumulator.

        Returns:
            True if the accumulated text changed
        """
        if not fragment:
            return False

        with self._lock:
            if self._state in _TERMINAL:
                logger.debug("Ignoring fragment after %s", self._state.value)
                return False
            merged = merge_fragment(self._text, fragment)
            changed = merged != self._text
            self._text = merged
            self._state = AggregatorState.ACCUMULATING
            return changed

    def complete(self) -> str:
        """Mark the stream finished and return the final text."""
        return self._finish(AggregatorState.COMPLETE, None)

    def fail(self, error: BaseException) -> str:
        """Mark the stream failed and return the partial text held so far."""
        return self._finish(AggregatorState.FAILED, error)

    def _finish(self, state: AggregatorState, error: BaseException | None) -> str:
        with self._lock:
            if self._state in _TERMINAL:
                return self._text
            self._state = state
            self._error = error
            text = self._text

        if error is not None:
            logger.warning(
                "Stream failed with %d chars accumulated: %r", len(text), error
            )
        if self._on_finish is not None:
            self._on_finish(text, error)
        return text


async def aggregate_stream(
    source: AsyncIterator[str], aggregator: StreamAggregator
) -> AsyncGenerator[str, None]:
    """Relay fragments from ``source`` while feeding them to ``aggregator``.

    Normal exhaustion completes the aggregator. A source error, task
    cancellation, or the consumer closing the generator early fails it, so
    the partial text is still flushed, and the exception propagates.
    """
    try:
        async for fragment in source:
            aggregator.feed(fragment)
            yield fragment
    except BaseException as e:
        aggregator.fail(e)
        raise
    aggregator.complete()
