"""Factory function for creating generation clients from configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from chatmem.llm.ollama import OllamaClient
from chatmem.llm.openai_compat import OpenAICompatibleClient

if TYPE_CHECKING:
    from chatmem.config.schema import ChatMemConfig


def create_llm_client(config: ChatMemConfig) -> OpenAICompatibleClient:
    """Create an LLM client based on configuration.

    Args:
        config: chatmem configuration.

    Returns:
        A streaming client for the configured backend.

    Raises:
        ValueError: If the backend is not recognised.
    """
    backend = config.inference.backend

    if backend == "ollama":
        return OllamaClient(
            model=config.model.name,
            base_url=config.ollama.host + "/v1",
            timeout=config.ollama.timeout,
            temperature=config.model.temperature,
        )
    elif backend == "openai":
        return OpenAICompatibleClient(
            model=config.model.name,
            base_url=config.inference.openai.base_url,
            api_key=config.inference.openai.api_key or "none",
            timeout=config.inference.openai.timeout,
            temperature=config.model.temperature,
        )
    else:
        msg = f"Unknown inference backend: {backend}"
        raise ValueError(msg)
