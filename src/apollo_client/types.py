"""Data structures shared by the Apollo client modules.

These light-weight dataclasses describe configuration snapshots, change
records and client options without tying callers to the transport or the
polling engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence

import httpx

ConfigMap = Dict[str, str]


class ChangeKind(Enum):
    """Kind of change between two configuration snapshots."""

    ADDED = "Added"
    UPDATED = "Updated"
    DELETED = "Deleted"


@dataclass(frozen=True)
class Change:
    """A single key level change.

    Attributes
    ----------
    kind:
        Whether the key was added, updated or deleted.
    key:
        The configuration key.
    value:
        The new value for additions and updates, the last known value for
        deletions.
    """

    kind: ChangeKind
    key: str
    value: str


@dataclass(frozen=True)
class Notification:
    """Server side change marker for one namespace."""

    namespace_name: str
    notification_id: int


def _to_seconds(value_ms: Optional[int]) -> Optional[float]:
    if value_ms is None:
        return None
    return value_ms / 1000.0


@dataclass(frozen=True)
class Timeouts:
    """Per-phase request timeouts in milliseconds.

    ``None`` disables the limit for that phase.  The watchdog bounds the
    whole asynchronous request; unless ``watchdog_ms`` is given it is the
    sum of the three phase timeouts.
    """

    connect_ms: Optional[int] = 500
    read_ms: Optional[int] = 120000
    write_ms: Optional[int] = 3000
    watchdog_ms: Optional[int] = None

    def to_httpx(self) -> httpx.Timeout:
        connect = _to_seconds(self.connect_ms)
        return httpx.Timeout(
            connect=connect,
            read=_to_seconds(self.read_ms),
            write=_to_seconds(self.write_ms),
            pool=connect,
        )

    def watchdog_seconds(self) -> Optional[float]:
        if self.watchdog_ms is not None:
            return _to_seconds(self.watchdog_ms)
        phases = (self.connect_ms, self.read_ms, self.write_ms)
        if any(p is None for p in phases):
            return None
        total = sum(phases)
        if total <= 0:
            return None
        return total / 1000.0


@dataclass(frozen=True)
class Opts:
    """Client options captured at construction time.

    Attributes
    ----------
    cluster_name:
        Apollo cluster to read from.
    label:
        Optional grayscale label; empty string means no label.
    namespaces:
        Namespaces to subscribe to.  Order is kept for request building.
    connect_timeout_ms, read_timeout_ms, write_timeout_ms:
        Transport timeouts.  The read timeout must exceed 60 seconds since
        the server holds long-poll requests for up to a minute.
    """

    cluster_name: str = "default"
    label: str = ""
    namespaces: Sequence[str] = ("application",)
    connect_timeout_ms: int = 500
    read_timeout_ms: int = 120000
    write_timeout_ms: int = 3000

    def timeouts(self) -> Timeouts:
        return Timeouts(
            connect_ms=self.connect_timeout_ms,
            read_ms=self.read_timeout_ms,
            write_ms=self.write_timeout_ms,
        )
