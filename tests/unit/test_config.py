import pytest
from pydantic import ValidationError

from agentdeck.config import hooks_dir_for, storage_path_for
from agentdeck.config.loader import expand_env_vars, load_deck_config, unknown_keys
from agentdeck.config.schema import DeckConfig
from agentdeck.core.errors import ConfigError
from agentdeck.paths import HOOKS_DIR, STORAGE_PATH


def test_missing_file_yields_defaults(tmp_path):
    cfg = load_deck_config(tmp_path / "config.yml")
    assert cfg.default_tool == "claude"
    assert cfg.watcher.enabled is True
    assert cfg.watcher.debounce_seconds == pytest.approx(0.1)
    assert cfg.ui.theme == "dark"
    assert hooks_dir_for(cfg) == HOOKS_DIR
    assert storage_path_for(cfg) == STORAGE_PATH


def test_config_valid(tmp_path):
    config_path = tmp_path / "config.yml"
    config_path.write_text(
        """
default_tool: codex
custom_tools: ["Aider", "aider", "goose"]
watcher:
  debounce_ms: 250
  hooks_dir: "/tmp/deck-hooks"
ui:
  theme: light
  confirm_delete: false
pr_cache:
  ttl_seconds: 30
""",
        encoding="utf-8",
    )
    cfg = load_deck_config(config_path)
    assert cfg.default_tool == "codex"
    assert cfg.custom_tools == ["aider", "goose"]
    assert cfg.watcher.debounce_seconds == pytest.approx(0.25)
    assert str(hooks_dir_for(cfg)) == "/tmp/deck-hooks"
    assert cfg.ui.theme == "light"
    assert cfg.ui.confirm_delete is False
    assert cfg.pr_cache.ttl_seconds == 30


def test_env_vars_are_expanded(tmp_path, monkeypatch):
    monkeypatch.setenv("DECK_STORE", str(tmp_path / "store.json"))
    config_path = tmp_path / "config.yml"
    config_path.write_text('storage_path: "${DECK_STORE}"\n', encoding="utf-8")

    cfg = load_deck_config(config_path)

    assert storage_path_for(cfg) == tmp_path / "store.json"


def test_unset_env_var_is_left_alone():
    assert expand_env_vars({"a": ["${DEFINITELY_NOT_SET_123}"]}) == {"a": ["${DEFINITELY_NOT_SET_123}"]}


def test_invalid_theme_rejected(tmp_path):
    config_path = tmp_path / "config.yml"
    config_path.write_text("ui:\n  theme: neon\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="Unknown theme"):
        load_deck_config(config_path)


def test_empty_custom_tool_rejected():
    with pytest.raises(ValidationError):
        DeckConfig(custom_tools=["  "])


def test_unreadable_yaml_falls_back_to_defaults(tmp_path):
    config_path = tmp_path / "config.yml"
    config_path.write_text("ui: [unclosed\n", encoding="utf-8")
    assert load_deck_config(config_path) == DeckConfig()


def test_unknown_keys_are_reported_with_dotted_paths(tmp_path):
    config_path = tmp_path / "config.yml"
    config_path.write_text("colour: red\nui:\n  font: mono\n", encoding="utf-8")

    cfg = load_deck_config(config_path)

    assert sorted(unknown_keys(cfg)) == ["colour", "ui.font"]
