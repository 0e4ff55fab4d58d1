"""Conversation turn orchestration.

Usage::

    from chatmem.chat import ChatTurnRunner
    from chatmem.config.schema import ChatMemConfig
    from chatmem.llm.factory import create_llm_client
    from chatmem.memory.factory import create_conversation_store

    config = ChatMemConfig()
    runner = ChatTurnRunner(
        store=create_conversation_store(config),
        llm=create_llm_client(config),
        system_prompt=config.agent.system_prompt,
    )
    async for fragment in runner.stream("c1", "Hello"):
        print(fragment, end="")
"""

from chatmem.chat.turn import ChatTurn, ChatTurnRunner, TurnResult

__all__ = ["ChatTurn", "ChatTurnRunner", "TurnResult"]
