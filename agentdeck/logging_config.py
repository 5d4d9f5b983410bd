"""agentdeck logging configuration.

agentdeck logs through `loguru`. The curses panel owns the terminal, so the
default stderr sink is replaced by a rotating file sink under the agentdeck
home directory (default: `~/.agentdeck/logs/agentdeck.log`).
Example log query: `tail -f ~/.agentdeck/logs/agentdeck.log`.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from agentdeck.paths import LOG_DIR

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(level: Optional[str] = None, *, log_dir: Path = LOG_DIR, to_stderr: bool = False) -> Path:
    """Configure agentdeck logging.

    Args:
        level: Optional override for `AGENTDECK_LOG_LEVEL`.
        log_dir: Directory for the rotating log file.
        to_stderr: Also log to stderr (CLI commands, never the curses panel).

    Returns:
        Path of the log file.
    """
    if level:
        os.environ["AGENTDECK_LOG_LEVEL"] = level
    resolved_level = os.environ.get("AGENTDECK_LOG_LEVEL", "INFO").upper()

    logger.remove()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "agentdeck.log"
    logger.add(
        log_path,
        level=resolved_level,
        format=_LOG_FORMAT,
        rotation="5 MB",
        retention=3,
    )
    if to_stderr:
        logger.add(sys.stderr, level="WARNING", format="{level}: {message}")
    return log_path
