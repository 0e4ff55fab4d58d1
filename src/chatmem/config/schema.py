"""Pydantic models for chatmem.yaml configuration."""

from typing import Literal

from pydantic import BaseModel, Field


class ModelConfig(BaseModel):
    """LLM model configuration."""

    name: str = Field(default="qwen2.5:7b", description="Model name served by the backend")
    temperature: float = Field(default=0.7, description="Sampling temperature", ge=0.0, le=2.0)


class OllamaConfig(BaseModel):
    """Ollama server configuration."""

    host: str = Field(default="http://localhost:11434", description="Ollama server URL")
    timeout: int = Field(default=120, description="Request timeout in seconds", ge=1)


class OpenAIConfig(BaseModel):
    """Generic OpenAI-compatible endpoint configuration."""

    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI-compatible endpoint including /v1",
    )
    api_key: str | None = Field(default=None, description="API key for the endpoint")
    timeout: int = Field(default=120, description="Request timeout in seconds", ge=1)


class InferenceConfig(BaseModel):
    """Inference backend configuration."""

    backend: Literal["ollama", "openai"] = Field(
        default="ollama",
        description="Inference backend to use",
    )
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)


class AgentConfig(BaseModel):
    """Chat turn configuration."""

    system_prompt: str = Field(
        default="You are a helpful assistant. Answer clearly and concisely.",
        description="System prompt prepended when a conversation has none",
    )


class RedisConfig(BaseModel):
    """Redis connection configuration."""

    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, description="Redis port", ge=1, le=65535)
    password: str | None = Field(default=None, description="Redis password")
    db: int = Field(default=0, description="Redis database index", ge=0)
    socket_timeout: float = Field(
        default=3.0, description="Per-command socket timeout in seconds", gt=0
    )
    socket_connect_timeout: float = Field(
        default=3.0, description="Connect timeout in seconds", gt=0
    )
    max_connections: int = Field(default=64, description="Connection pool size", ge=1)


class MemoryConfig(BaseModel):
    """Conversation memory configuration."""

    backend: Literal["redis", "memory"] = Field(
        default="redis",
        description="Conversation store: 'redis' for durable storage, 'memory' for process-local",
    )
    key_prefix: str = Field(
        default="chat:memory:",
        description="Prefix prepended to conversation ids to form store keys",
    )
    ttl_seconds: int = Field(
        default=604800,
        description="Sliding expiration window for a conversation in seconds",
        ge=1,
    )
    history_window: int = Field(
        default=20,
        description="Number of most recent messages sent to the model (0 = all)",
        ge=0,
    )
    fallback_to_memory: bool = Field(
        default=True,
        description="Use the in-memory store when Redis is unreachable at startup",
    )


class HistoryConfig(BaseModel):
    """History API configuration."""

    default_page_size: int = Field(default=10, description="Default page size", ge=1, le=100)
    admin_key: str = Field(
        default="admin",
        description="Key required to enumerate all conversations",
    )


class ServerConfig(BaseModel):
    """API server configuration."""

    host: str = Field(default="127.0.0.1", description="Server bind address")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins (use ['*'] for development only)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Root log level"
    )


class ChatMemConfig(BaseModel):
    """Root configuration schema for chatmem."""

    model: ModelConfig = Field(default_factory=ModelConfig)
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    memory: MemoryConfig = Field(
        default_factory=MemoryConfig,
        description="Conversation store configuration",
    )
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
