"""Locate, parse and validate chatmem.yaml."""

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from chatmem.config.schema import ChatMemConfig
from chatmem.memory.store import ChatMemError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".chatmem" / "chatmem.yaml"

# Lets a detached server process see the same file as the CLI that started it
CONFIG_ENV_VAR = "CHATMEM_CONFIG"


class ConfigError(ChatMemError):
    """chatmem.yaml exists but cannot be used."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason} ({path})")


def resolve_config_path(path: Path | str | None = None) -> Path:
    """Pick the config file: explicit path, then $CHATMEM_CONFIG, then the default."""
    if path:
        return Path(path).expanduser()
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env).expanduser()
    return DEFAULT_CONFIG_PATH


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}" for item in error.errors()
    )


def load_config(path: Path | str | None = None) -> ChatMemConfig:
    """Load configuration, falling back to defaults when there is no file.

    Sections left out of the file keep their defaults, so a file holding
    only ``memory:`` and ``redis:`` is complete.

    Args:
        path: Config file; see :func:`resolve_config_path` when omitted

    Raises:
        ConfigError: If the file is unreadable, not YAML, or fails validation
    """
    config_path = resolve_config_path(path)
    if not config_path.exists():
        logger.debug("No config file at %s, using defaults", config_path)
        return ChatMemConfig()

    try:
        raw = config_path.read_text()
    except OSError as e:
        raise ConfigError(config_path, f"Cannot read config: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(config_path, f"Invalid YAML: {e}") from e

    if data is None:
        return ChatMemConfig()
    if not isinstance(data, dict):
        raise ConfigError(
            config_path, f"Expected a mapping of sections, got {type(data).__name__}"
        )

    try:
        config = ChatMemConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(config_path, f"Configuration validation failed: {_describe(e)}") from e

    logger.debug("Loaded config from %s", config_path)
    return config
