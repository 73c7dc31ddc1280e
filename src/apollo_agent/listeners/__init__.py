"""Listener implementations used by the Apollo agent."""

from .base import ChangeListener  # noqa: F401
from .log import LoggingChangeListener, create_log_listener  # noqa: F401

__all__ = ["ChangeListener", "LoggingChangeListener", "create_log_listener"]
