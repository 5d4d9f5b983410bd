"""Configuration for agentdeck.

`get_config()` loads `AGENTDECK_CONFIG_PATH` or `~/.agentdeck/config.yml` on
first use and caches the result. A missing file yields the defaults; invalid
values raise ConfigError to the caller instead of failing at import.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from agentdeck.config.loader import load_config, load_deck_config
from agentdeck.config.schema import DeckConfig, PRCacheConfig, UIConfig, WatcherConfig
from agentdeck.paths import AGENTDECK_HOME, CONFIG_PATH, HOOKS_DIR, STORAGE_PATH


def resolve_config_path() -> Path:
    env_path = os.getenv("AGENTDECK_CONFIG_PATH")
    return Path(env_path).expanduser() if env_path else CONFIG_PATH


def hooks_dir_for(cfg: DeckConfig) -> Path:
    """Directory hook scripts write status files into."""
    if cfg.watcher.hooks_dir:
        return Path(cfg.watcher.hooks_dir).expanduser()
    return HOOKS_DIR


def storage_path_for(cfg: DeckConfig) -> Path:
    if cfg.storage_path:
        return Path(cfg.storage_path).expanduser()
    return STORAGE_PATH


@lru_cache(maxsize=1)
def get_config() -> DeckConfig:
    return load_deck_config(resolve_config_path())


__all__ = [
    "AGENTDECK_HOME",
    "DeckConfig",
    "PRCacheConfig",
    "UIConfig",
    "WatcherConfig",
    "get_config",
    "hooks_dir_for",
    "load_config",
    "load_deck_config",
    "resolve_config_path",
    "storage_path_for",
]
