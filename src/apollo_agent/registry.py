"""Listener registry fanning namespace changes out to named listeners."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Sequence

from apollo_client.types import Change

from .events import NamespaceChanged
from .listeners import ChangeListener

LOG = logging.getLogger(__name__)


class ListenerRegistry:
    """Dispatch :class:`NamespaceChanged` events to registered listeners.

    Instances are callable with the client's notification signature, so a
    registry can be handed to
    :meth:`apollo_client.client.ApolloClient.set_notifications_listener`.
    The client only keeps a weak reference; the owner must keep the registry
    alive for as long as notifications are wanted.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, ChangeListener] = {}

    def register(self, name: str, listener: ChangeListener) -> None:
        if name in self._listeners:
            raise ValueError(f"listener '{name}' already registered")
        self._listeners[name] = listener

    def unregister(self, name: str) -> None:
        self._listeners.pop(name, None)

    def names(self) -> List[str]:
        return list(self._listeners)

    def handle(self, event: NamespaceChanged) -> None:
        if not isinstance(event, NamespaceChanged):
            raise TypeError(f"Unsupported event type: {type(event)!r}")
        for name, listener in list(self._listeners.items()):
            try:
                listener.on_namespace_changed(event)
            except Exception:
                LOG.exception("listener %s failed for namespace %s", name, event.namespace)

    def __call__(
        self,
        namespace: str,
        old_configs: Mapping[str, str],
        new_configs: Mapping[str, str],
        changes: Sequence[Change],
    ) -> None:
        self.handle(NamespaceChanged(namespace, old_configs, new_configs, tuple(changes)))
