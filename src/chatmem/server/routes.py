"""API routes for the chatmem server."""

import logging
import uuid
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Query
from pydantic import BaseModel
from sse_starlette.sse import EventSourceResponse

from chatmem import __version__
from chatmem.chat.turn import ChatTurnRunner
from chatmem.config.schema import ChatMemConfig
from chatmem.llm.client import GenerationSource
from chatmem.llm.factory import create_llm_client
from chatmem.memory.directory import (
    ConversationDirectory,
    NotAuthorizedError,
    admin_key_matches,
)
from chatmem.memory.factory import create_conversation_store
from chatmem.memory.history import HistoryService
from chatmem.memory.pagination import InvalidPageRequestError
from chatmem.memory.schema import (
    ConversationDetail,
    ConversationInfo,
    HistoryView,
    PageDescriptor,
)
from chatmem.memory.store import ConversationStore, StoreUnavailableError

logger = logging.getLogger(__name__)


class ChatRequest(BaseModel):
    """Request body for chat endpoints."""

    message: str
    conversation_id: str | None = None


class ChatResponse(BaseModel):
    """Response body for chat endpoint."""

    conversation_id: str
    response: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    store: str
    version: str


class ClearResponse(BaseModel):
    message: str
    conversation_id: str


class RefreshTtlResponse(BaseModel):
    conversation_id: str
    remaining_ttl: int


class BatchCheckResponse(BaseModel):
    total: int
    exists: dict[str, bool]


class AllConversationsResponse(BaseModel):
    total: int
    conversations: list[ConversationDetail]


def create_router(
    config: ChatMemConfig,
    store: ConversationStore | None = None,
    llm: GenerationSource | None = None,
    runner: ChatTurnRunner | None = None,
) -> APIRouter:
    """Create API router wired to a conversation store and generation source.

    Args:
        config: chatmem configuration
        store: Conversation store (built from config if omitted)
        llm: Generation source (built from config if omitted)
        runner: Chat turn runner (built from store and llm if omitted)

    Returns:
        Configured API router
    """
    router = APIRouter()

    if runner is not None:
        store, llm = runner.store, runner.llm
    if store is None:
        store = create_conversation_store(config)
    if llm is None:
        llm = create_llm_client(config)

    directory = ConversationDirectory(store)
    history = HistoryService(store, directory)
    if runner is None:
        runner = ChatTurnRunner(
            store=store,
            llm=llm,
            system_prompt=config.agent.system_prompt,
            history_window=config.memory.history_window,
        )

    @router.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            store="ok" if store.ping() else "unavailable",
            version=__version__,
        )

    @router.post("/chat", response_model=ChatResponse)
    async def chat(request: ChatRequest) -> ChatResponse:
        """Chat endpoint - non-streaming version."""
        conversation_id = request.conversation_id or str(uuid.uuid4())
        result = await runner.run(conversation_id, request.message)

        if result.error is not None:
            raise HTTPException(status_code=502, detail=f"Generation failed: {result.error}")
        if result.persist_error is not None:
            raise HTTPException(status_code=503, detail=str(result.persist_error))

        return ChatResponse(conversation_id=conversation_id, response=result.text)

    @router.post("/chat/stream")
    async def chat_stream(request: ChatRequest) -> EventSourceResponse:
        """Chat endpoint - Server-Sent Events streaming version."""
        conversation_id = request.conversation_id or str(uuid.uuid4())

        async def event_generator() -> Any:
            try:
                async for fragment in runner.stream(conversation_id, request.message):
                    yield {"event": "message", "data": fragment}
            except Exception as e:
                logger.error("Streaming turn failed for conversation %s: %s", conversation_id, e)
                yield {"event": "error", "data": str(e)}
                return

            yield {"event": "done", "data": conversation_id}

        return EventSourceResponse(event_generator())

    @router.get("/api/history/admin/conversations", response_model=AllConversationsResponse)
    def all_conversations(
        admin_key: str | None = Query(default=None),
        prefix: str | None = Query(default=None),
    ) -> AllConversationsResponse:
        """List every live conversation (administrator only)."""
        try:
            details = directory.list_details(
                authorized=admin_key_matches(admin_key, config.history.admin_key),
                key_prefix=prefix,
            )
        except NotAuthorizedError as e:
            raise HTTPException(status_code=403, detail=str(e)) from e

        return AllConversationsResponse(total=len(details), conversations=details)

    @router.post("/api/history/batch/check", response_model=BatchCheckResponse)
    def batch_check(conversation_ids: list[str] = Body(...)) -> BatchCheckResponse:
        """Check whether several conversations exist."""
        exists = directory.batch_exists(conversation_ids)
        return BatchCheckResponse(total=len(conversation_ids), exists=exists)

    @router.get("/api/history/{conversation_id}", response_model=HistoryView)
    def get_history(conversation_id: str, last_n: int = Query(default=-1)) -> HistoryView:
        """Return a conversation's history, optionally only the last N messages."""
        return history.get_history(conversation_id, last_n)

    @router.delete("/api/history/{conversation_id}", response_model=ClearResponse)
    def clear_history(conversation_id: str) -> ClearResponse:
        """Delete a conversation."""
        try:
            history.clear(conversation_id)
        except StoreUnavailableError as e:
            raise HTTPException(status_code=503, detail=str(e)) from e
        return ClearResponse(message="Conversation history cleared", conversation_id=conversation_id)

    @router.get("/api/history/{conversation_id}/info", response_model=ConversationInfo)
    def conversation_info(conversation_id: str) -> ConversationInfo:
        """Return existence, size and expiry of a conversation."""
        return history.info(conversation_id)

    @router.post("/api/history/{conversation_id}/refresh", response_model=RefreshTtlResponse)
    def refresh_ttl(conversation_id: str) -> RefreshTtlResponse:
        """Reset a conversation's expiry window."""
        remaining = history.refresh(conversation_id)
        return RefreshTtlResponse(conversation_id=conversation_id, remaining_ttl=remaining)

    @router.get("/api/history/{conversation_id}/page", response_model=PageDescriptor)
    def history_page(
        conversation_id: str,
        page: int = Query(default=1),
        size: int = Query(default=config.history.default_page_size),
    ) -> PageDescriptor:
        """Return one page of history, page 1 being the newest messages."""
        try:
            return history.page(conversation_id, page, size)
        except InvalidPageRequestError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

    return router
