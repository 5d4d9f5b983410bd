"""agentdeck: a terminal panel for AI coding-agent sessions."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("agentdeck")
except PackageNotFoundError:
    # Source checkout without an install
    __version__ = "0.0.0"

__all__ = ["__version__"]
