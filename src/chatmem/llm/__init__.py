"""LLM client implementations."""

from .client import GenerationSource, Message, ToolCall
from .factory import create_llm_client
from .ollama import OllamaClient
from .openai_compat import OpenAICompatibleClient

__all__ = [
    "GenerationSource",
    "Message",
    "OllamaClient",
    "OpenAICompatibleClient",
    "ToolCall",
    "create_llm_client",
]
