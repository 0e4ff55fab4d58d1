"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chatmem import __version__
from chatmem.chat.turn import ChatTurnRunner
from chatmem.config.schema import ChatMemConfig
from chatmem.llm.client import GenerationSource
from chatmem.llm.factory import create_llm_client
from chatmem.memory.factory import create_conversation_store
from chatmem.memory.store import ConversationStore
from chatmem.server.routes import create_router


def create_app(
    config: ChatMemConfig,
    store: ConversationStore | None = None,
    llm: GenerationSource | None = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        config: chatmem configuration
        store: Optional conversation store override
        llm: Optional generation source override

    Returns:
        Configured FastAPI app
    """
    runner = ChatTurnRunner(
        store=store if store is not None else create_conversation_store(config),
        llm=llm if llm is not None else create_llm_client(config),
        system_prompt=config.agent.system_prompt,
        history_window=config.memory.history_window,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        # let in-flight turns finish saving before shutdown
        await runner.drain()

    app = FastAPI(
        title="chatmem",
        description="Conversation memory service for streaming chat backends",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_router(config, runner=runner))

    return app
