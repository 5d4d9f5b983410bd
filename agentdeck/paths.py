from __future__ import annotations

import os
from pathlib import Path

_home_override = os.getenv("AGENTDECK_HOME")
AGENTDECK_HOME = Path(_home_override).expanduser() if _home_override else (Path("~/.agentdeck")).expanduser()
HOOKS_DIR = AGENTDECK_HOME / "hooks"
STORAGE_PATH = AGENTDECK_HOME / "sessions.json"
UI_STATE_PATH = AGENTDECK_HOME / "ui_state.json"
LOG_DIR = AGENTDECK_HOME / "logs"
CONFIG_PATH = AGENTDECK_HOME / "config.yml"
