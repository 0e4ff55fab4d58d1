"""chatmem - Conversation memory service for streaming chat backends.

chatmem persists multi-turn dialogue state in an expiring remote store,
serves paginated and windowed history reads, and reconciles token-streamed
model responses into a single durable message.

Key modules:

- :mod:`chatmem.memory` - Conversation store, pagination, stream aggregation, directory
- :mod:`chatmem.chat` - Chat turn orchestration (history, generation, persistence)
- :mod:`chatmem.llm` - Message types and OpenAI-compatible streaming clients
- :mod:`chatmem.server` - FastAPI chat and history endpoints
- :mod:`chatmem.cli` - Typer command line for serving and inspecting history
"""

__version__ = "0.1.0"
