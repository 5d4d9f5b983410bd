import os
import re
from pathlib import Path
from typing import Type, TypeVar

import yaml
from loguru import logger
from pydantic import BaseModel, ValidationError

from agentdeck.config.schema import DeckConfig
from agentdeck.core.errors import ConfigError

T = TypeVar("T", bound=BaseModel)


def expand_env_vars(config: object) -> object:
    """Recursively expand environment variables in config.

    Replaces ${VAR} patterns with environment variable values.

    Args:
        config: Configuration object (dict, list, str, or primitive)

    Returns:
        Configuration with all ${VAR} patterns replaced
    """
    if isinstance(config, dict):
        return {k: expand_env_vars(v) for k, v in config.items()}
    if isinstance(config, list):
        return [expand_env_vars(item) for item in config]
    if isinstance(config, str):

        def replace_env_var(match: re.Match[str]) -> str:
            env_var = match.group(1)
            return os.getenv(env_var, match.group(0))

        return re.sub(r"\$\{([^}]+)\}", replace_env_var, config)
    return config


def unknown_keys(model: BaseModel, prefix: str = "") -> list[str]:
    """Dotted names of keys the schema does not define, nested sections included."""
    found = [f"{prefix}{key}" for key in (model.model_extra or {})]
    for field_name in type(model).model_fields:
        value = getattr(model, field_name)
        if isinstance(value, BaseModel):
            found.extend(unknown_keys(value, f"{prefix}{field_name}."))
    return found


def load_config(path: Path, model_class: Type[T]) -> T:
    """Load and validate a YAML config file into model_class.

    A missing or unreadable file yields the model defaults; values the schema
    rejects raise ConfigError.
    """
    if not path.exists():
        logger.debug("No config at {}, using defaults", path)
        return model_class()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to read config file {}: {}", path, e)
        return model_class()

    try:
        model = model_class.model_validate(expand_env_vars(raw))
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e
    extra = unknown_keys(model)
    if extra:
        logger.warning("Ignoring unknown config keys in {}: {}", path, ", ".join(extra))
    return model


def load_deck_config(path: Path) -> DeckConfig:
    """Load the panel configuration."""
    return load_config(path, DeckConfig)
