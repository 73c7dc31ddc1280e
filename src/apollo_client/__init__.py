"""Client for the Apollo configuration center.

The package keeps an in-process cache of one or more configuration
namespaces and watches the server for changes through its HTTP long-polling
notification API:

* :func:`apollo_client.diff.diff` turns two snapshots into an ordered list of
  additions, updates and deletions;
* :class:`apollo_client.cache.NamespaceState` holds the last known release of
  each namespace behind its own locks;
* :class:`apollo_client.transport.TimedTransport` issues blocking or
  asynchronous HTTP requests bounded by per-phase timeouts and a watchdog;
* :class:`apollo_client.client.ApolloClient` ties them together with a
  single background thread running the polling event loop.

Only plain HTTP is supported.
"""

from .cache import NamespaceState  # noqa: F401
from .client import ApolloClient, make_apollo_client  # noqa: F401
from .diff import diff  # noqa: F401
from .exceptions import (  # noqa: F401
    ApolloError,
    ClientInitError,
    DecodeError,
    ErrorKind,
    HostUnreachable,
    InvalidArgument,
    ServerError,
    Timeout,
    TransportError,
    TransportIOError,
    UnsupportedProtocol,
)
from .transport import TimedTransport  # noqa: F401
from .types import Change, ChangeKind, ConfigMap, Notification, Opts, Timeouts  # noqa: F401

__all__ = [
    "ApolloClient",
    "ApolloError",
    "Change",
    "ChangeKind",
    "ClientInitError",
    "ConfigMap",
    "DecodeError",
    "ErrorKind",
    "HostUnreachable",
    "InvalidArgument",
    "NamespaceState",
    "Notification",
    "Opts",
    "ServerError",
    "TimedTransport",
    "Timeout",
    "Timeouts",
    "TransportError",
    "TransportIOError",
    "UnsupportedProtocol",
    "diff",
    "make_apollo_client",
]
