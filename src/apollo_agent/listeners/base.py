"""Abstract interface for change listeners."""

from __future__ import annotations

from abc import ABC, abstractmethod

from apollo_agent.events import NamespaceChanged


class ChangeListener(ABC):
    """Base class for listeners managed by :class:`ListenerRegistry`."""

    @abstractmethod
    def on_namespace_changed(self, event: NamespaceChanged) -> None:
        """React to ``event``; exceptions are logged by the registry."""
