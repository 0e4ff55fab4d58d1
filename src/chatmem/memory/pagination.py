"""Reverse-chronological pagination over an append-only message list.

Page 1 holds the ``size`` most recently appended messages, page 2 the
``size`` messages immediately older, and so on. Messages inside a page are
returned newest first. The engine maps those logical pages onto the
forward (oldest-first) indices of the stored list.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

from chatmem.memory.store import ChatMemError

T = TypeVar("T")

MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 100


class InvalidPageRequestError(ChatMemError, ValueError):
    """Page number or page size outside the accepted range."""


@dataclass(frozen=True)
class PageWindow:
    """Forward index bounds and metadata for one logical page."""

    from_index: int
    to_index: int
    total_pages: int
    has_next: bool
    has_previous: bool

    @property
    def empty(self) -> bool:
        return self.to_index < 0 or self.from_index > self.to_index


def validate_page_request(page: int, size: int) -> None:
    """Reject page requests before they reach the engine.

    Raises:
        InvalidPageRequestError: If ``page < 1`` or ``size`` is outside [1, 100]
    """
    if page < 1:
        raise InvalidPageRequestError(f"page must be >= 1, got {page}")
    if not MIN_PAGE_SIZE <= size <= MAX_PAGE_SIZE:
        raise InvalidPageRequestError(
            f"size must be between {MIN_PAGE_SIZE} and {MAX_PAGE_SIZE}, got {size}"
        )


def compute_page_window(total: int, page: int, size: int) -> PageWindow:
    """Compute the slice of a ``total``-long list that forms ``page``.

    Assumes a validated request (see :func:`validate_page_request`).

    Args:
        total: Number of messages in the conversation
        page: 1-indexed logical page, 1 = newest
        size: Page size

    Returns:
        Window with inclusive forward indices; ``empty`` when the page is out of range
    """
    to_index = total - (page - 1) * size - 1
    from_index = max(total - page * size, 0)
    total_pages = math.ceil(total / size) if total > 0 else 0

    if to_index < 0:
        to_index = -1

    return PageWindow(
        from_index=from_index,
        to_index=to_index,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_previous=page > 1,
    )


def paginate(messages: Sequence[T], page: int, size: int) -> list[T]:
    """Return one page of an oldest-first sequence, newest first."""
    window = compute_page_window(len(messages), page, size)
    if window.empty:
        return []
    return list(reversed(messages[window.from_index : window.to_index + 1]))
