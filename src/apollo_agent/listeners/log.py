"""Listener that reports configuration changes through logging."""

from __future__ import annotations

import logging
from typing import Optional

from apollo_client.types import ChangeKind

from apollo_agent.events import NamespaceChanged

from .base import ChangeListener

LOG = logging.getLogger(__name__)

LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def parse_level(value: str) -> int:
    try:
        return LEVELS[value.lower()]
    except KeyError:
        raise ValueError(f"unknown log level '{value}'") from None


class LoggingChangeListener(ChangeListener):
    """Log one line per namespace change plus one per changed key."""

    def __init__(self, level: int = logging.INFO, logger: Optional[logging.Logger] = None) -> None:
        self._level = level
        self._log = logger or LOG

    def on_namespace_changed(self, event: NamespaceChanged) -> None:
        ns = event.namespace
        self._log.log(self._level, "configuration changed for namespace %s", ns)
        for change in event.changes:
            if change.kind is ChangeKind.DELETED:
                self._log.log(self._level, "namespace:%s Deleted: %s", ns, change.key)
            else:
                self._log.log(
                    self._level, "namespace:%s %s: %s = %s", ns, change.kind.value, change.key, change.value
                )


def create_log_listener(options: dict) -> LoggingChangeListener:
    level = parse_level(str(options.get("level", "info")))
    return LoggingChangeListener(level=level)
