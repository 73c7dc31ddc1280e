"""Per-namespace cache of the last known configuration state."""

from __future__ import annotations

from threading import Lock
from typing import Mapping, Tuple

from .types import ConfigMap

UNKNOWN_NOTIFICATION_ID = -1


class NamespaceState:
    """Thread-safe holder for one namespace.

    ``release_key`` and ``configs`` share a lock so readers always observe a
    matching pair.  The notification id only feeds request construction and
    is guarded by its own lock.
    """

    def __init__(
        self,
        release_key: str = "",
        notification_id: int = UNKNOWN_NOTIFICATION_ID,
    ) -> None:
        self._configs_lock = Lock()
        self._release_key = release_key
        self._configs: ConfigMap = {}
        self._notification_lock = Lock()
        self._notification_id = notification_id

    def get(self) -> Tuple[str, ConfigMap]:
        """Return ``(release_key, configs)``; the map is a private copy."""

        with self._configs_lock:
            return self._release_key, dict(self._configs)

    def set(self, release_key: str, configs: Mapping[str, str]) -> None:
        snapshot = dict(configs)
        with self._configs_lock:
            self._release_key = release_key
            self._configs = snapshot

    @property
    def release_key(self) -> str:
        with self._configs_lock:
            return self._release_key

    def get_notification_id(self) -> int:
        with self._notification_lock:
            return self._notification_id

    def set_notification_id(self, notification_id: int) -> None:
        with self._notification_lock:
            self._notification_id = notification_id

    def __repr__(self) -> str:
        release_key, configs = self.get()
        return (
            f"NamespaceState(release_key={release_key!r}, "
            f"keys={len(configs)}, notification_id={self.get_notification_id()})"
        )
