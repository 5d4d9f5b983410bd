from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agentdeck.constants import HOOK_DEBOUNCE_S, PR_CACHE_TTL_S


class WatcherConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    enabled: bool = True
    debounce_ms: int = Field(default=int(HOOK_DEBOUNCE_S * 1000), ge=0, le=10_000)
    hooks_dir: str | None = None  # Defaults to <home>/hooks

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


class UIConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    theme: str = "dark"
    show_hotkeys: bool = True
    confirm_delete: bool = True

    @field_validator("theme")
    @classmethod
    def validate_theme(cls, v: str) -> str:
        """Only the two bundled themes are selectable."""
        if v not in ("dark", "light"):
            raise ValueError(f"Unknown theme: {v}. Expected 'dark' or 'light'")
        return v


class PRCacheConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    ttl_seconds: float = Field(default=PR_CACHE_TTL_S, gt=0)


class DeckConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    log_level: str = "INFO"
    storage_path: str | None = None  # Defaults to <home>/sessions.json
    default_tool: str = "claude"
    custom_tools: List[str] = []
    watcher: WatcherConfig = WatcherConfig()
    ui: UIConfig = UIConfig()
    pr_cache: PRCacheConfig = PRCacheConfig()

    @field_validator("custom_tools")
    @classmethod
    def validate_custom_tools(cls, v: List[str]) -> List[str]:
        """Custom tool identifiers are lowercase, non-empty and unique."""
        cleaned: list[str] = []
        for name in v:
            tool = name.strip().lower()
            if not tool:
                raise ValueError("Custom tool names cannot be empty")
            if tool not in cleaned:
                cleaned.append(tool)
        return cleaned
