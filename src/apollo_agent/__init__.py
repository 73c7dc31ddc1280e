"""Apollo watcher agent runtime helpers."""

from .config import AgentConfig, load_config  # noqa: F401
from .registry import ListenerRegistry  # noqa: F401

__all__ = [
    "AgentConfig",
    "ListenerRegistry",
    "load_config",
]
