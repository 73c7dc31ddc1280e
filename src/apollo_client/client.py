"""Long-polling Apollo client.

:class:`ApolloClient` loads every subscribed namespace synchronously when it
is constructed, then (once started) runs a dedicated thread that drives one
asyncio event loop.  Each poll cycle long-polls ``/notifications/v2``; for
every namespace the server reports as changed it fetches the no-cache
configuration, diffs it against the cached copy, notifies the registered
listener and commits the new state.  Reads are served from the cache at all
times and never touch the network.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import weakref
from threading import Event, Lock, Thread, current_thread
from typing import Callable, Dict, List, Optional, Sequence

import httpx

from .cache import NamespaceState
from .codec import decode_configs, decode_notifications
from .diff import diff
from .exceptions import (
    ApolloError,
    ClientInitError,
    DecodeError,
    ErrorKind,
    ServerError,
)
from .transport import HttpxTransport, TimedTransport
from .types import Change, ConfigMap, Notification, Opts
from .urls import configs_url, notifications_url, validate_base_url

LOG = logging.getLogger(__name__)

# Servers hold notification requests for up to 60s.
LONG_POLL_HOLD_MS = 60000

NotificationCallback = Callable[[str, ConfigMap, ConfigMap, List[Change]], None]


def _weak(callback: Optional[NotificationCallback]):
    if callback is None:
        return None
    if inspect.ismethod(callback):
        return weakref.WeakMethod(callback)
    return weakref.ref(callback)


def validate_options(apollo_url: str, app_id: str, opts: Opts) -> None:
    """Raise :class:`ClientInitError` if any construction argument is invalid."""

    try:
        validate_base_url(apollo_url)
    except ApolloError as exc:
        raise ClientInitError.wrap(exc, "invalid apollo url") from exc

    problems = []
    if not app_id:
        problems.append("app_id cannot be empty")
    if not opts.cluster_name:
        problems.append("cluster name cannot be empty")
    if not opts.namespaces:
        problems.append("at least one namespace must be specified")
    elif any(not ns for ns in opts.namespaces):
        problems.append("namespace names cannot be empty")
    if opts.connect_timeout_ms <= 0:
        problems.append("connect timeout must be greater than 0")
    if opts.read_timeout_ms <= LONG_POLL_HOLD_MS:
        problems.append(f"read timeout must be greater than {LONG_POLL_HOLD_MS} ms")
    if opts.write_timeout_ms <= 0:
        problems.append("write timeout must be greater than 0")

    if problems:
        raise ClientInitError(ErrorKind.INVALID_ARGUMENT, "; ".join(problems))


class ApolloClient:
    """Cache and watch configuration namespaces of one Apollo application."""

    def __init__(
        self,
        apollo_url: str,
        app_id: str,
        opts: Optional[Opts] = None,
        *,
        logger: Optional[logging.Logger] = None,
        transport: Optional[HttpxTransport] = None,
    ) -> None:
        opts = opts or Opts()
        validate_options(apollo_url, app_id, opts)

        self._apollo_url = apollo_url
        self._app_id = app_id
        self._opts = opts
        self._log = logger or LOG
        self._namespaces: Dict[str, NamespaceState] = {
            ns: NamespaceState() for ns in dict.fromkeys(opts.namespaces)
        }
        self._transport = TimedTransport(opts.timeouts(), transport=transport)
        self._listener = None

        self._state_lock = Lock()
        self._running = Event()
        self._stop_requested = Event()
        self._thread: Optional[Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._task: Optional[asyncio.Task] = None

        self._load_initial()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def namespaces(self) -> Sequence[str]:
        return list(self._namespaces)

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def transport(self) -> TimedTransport:
        return self._transport

    def get_configures(self, namespace: str) -> ConfigMap:
        """Return a copy of the cached configuration for ``namespace``.

        Unknown namespaces yield an empty mapping.
        """

        state = self._namespaces.get(namespace)
        if state is None:
            return {}
        return state.get()[1]

    def set_notifications_listener(self, callback: Optional[NotificationCallback]) -> None:
        """Hold a weak reference to ``callback``.

        The callback is invoked from the polling thread as
        ``callback(namespace, old_configs, new_configs, changes)``.  The
        caller owns it: once it is garbage collected notifications stop.
        """

        self._listener = _weak(callback)

    def start(self, interval_ms: int) -> None:
        """Start background polling every ``interval_ms`` milliseconds.

        A non-positive interval means "never poll" and leaves the client
        stopped.  Starting a running client does nothing.
        """

        if interval_ms <= 0:
            self._log.info("poll interval %s ms is not positive; long polling disabled", interval_ms)
            return

        # stop() joins the polling thread while holding the state lock
        if self._thread is current_thread():
            return

        with self._state_lock:
            if self._thread is not None:
                return
            loop = asyncio.new_event_loop()
            thread = Thread(
                target=self._run_loop,
                args=(loop, interval_ms / 1000.0),
                name=f"apollo-poller-{self._app_id}",
                daemon=True,
            )
            self._loop = loop
            self._thread = thread
            self._stop_requested.clear()
            self._running.set()
            thread.start()
        self._log.info("started long polling %s every %d ms", self._apollo_url, interval_ms)

    def stop(self) -> None:
        """Stop polling and wait for the background thread to exit."""

        if self._thread is current_thread():
            raise RuntimeError("stop() cannot be called from the polling thread")

        with self._state_lock:
            thread, loop = self._thread, self._loop
            if thread is None:
                return

            self._running.clear()
            self._stop_requested.set()
            try:
                loop.call_soon_threadsafe(self._cancel_task)
            except RuntimeError:
                # loop already closed; the thread is on its way out
                pass
            thread.join()
            self._thread = None
            self._loop = None
        self._log.info("stopped long polling %s", self._apollo_url)

    # ------------------------------------------------------------------
    # Initial synchronous load
    # ------------------------------------------------------------------
    def _load_initial(self) -> None:
        try:
            self._seed_notification_ids()
            for namespace, state in self._namespaces.items():
                url = self._configs_url(namespace, state, state.get_notification_id())
                response = self._transport.get(url)
                _require_status(response, url)
                release_key, configs = decode_configs(response.text)
                state.set(release_key, configs)
                self._log.debug(
                    "loaded namespace %s release %s (%d keys)", namespace, release_key, len(configs)
                )
        except ApolloError as exc:
            raise ClientInitError.wrap(exc, "initial configuration load failed") from exc
        finally:
            self._transport.close()

    def _seed_notification_ids(self) -> None:
        url = self._notifications_url()
        response = self._transport.get(url)
        if response.status_code == httpx.codes.NOT_MODIFIED:
            return
        _require_status(response, url)
        for notification in decode_notifications(response.text):
            state = self._namespaces.get(notification.namespace_name)
            if state is not None:
                state.set_notification_id(notification.notification_id)

    # ------------------------------------------------------------------
    # Background loop
    # ------------------------------------------------------------------
    def _run_loop(self, loop: asyncio.AbstractEventLoop, interval: float) -> None:
        asyncio.set_event_loop(loop)
        try:
            self._task = loop.create_task(self._serve(interval))
            loop.run_until_complete(self._task)
        except asyncio.CancelledError:
            self._log.debug("poll loop cancelled")
        finally:
            self._task = None
            loop.run_until_complete(self._transport.aclose())
            loop.run_until_complete(loop.shutdown_asyncgens())
            asyncio.set_event_loop(None)
            loop.close()

    def _cancel_task(self) -> None:
        if self._task is not None:
            self._task.cancel()

    async def _serve(self, interval: float) -> None:
        while self._running.is_set():
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                self._log.exception("poll cycle failed unexpectedly")
            if not self._running.is_set():
                break
            await asyncio.sleep(interval)

    async def poll_once(self) -> None:
        """Run a single notification poll and refresh changed namespaces."""

        url = self._notifications_url()
        try:
            response = await self._transport.request_async("GET", url)
        except ApolloError as exc:
            self._log.warning("notification poll failed: %s", exc)
            return

        if response.status_code == httpx.codes.NOT_MODIFIED:
            self._log.debug("no configuration changes reported")
            return
        if response.status_code != httpx.codes.OK:
            self._log.warning("notification poll returned unexpected status %s", response.status_code)
            return

        try:
            notifications = decode_notifications(response.text)
        except DecodeError as exc:
            self._log.warning("failed to decode notifications: %s", exc)
            return

        for notification in notifications:
            state = self._namespaces.get(notification.namespace_name)
            if state is None:
                self._log.debug("ignoring notification for unknown namespace %s", notification.namespace_name)
                continue
            await self._refresh_namespace(notification, state)

    async def _refresh_namespace(self, notification: Notification, state: NamespaceState) -> None:
        namespace = notification.namespace_name
        url = self._configs_url(namespace, state, notification.notification_id)
        try:
            response = await self._transport.request_async("GET", url)
            _require_status(response, url)
            release_key, new_configs = decode_configs(response.text)
        except ApolloError as exc:
            self._log.warning("failed to refresh namespace %s: %s", namespace, exc)
            return

        if self._stop_requested.is_set():
            return

        _, old_configs = state.get()
        changes = diff(old_configs, new_configs)
        self._log.info(
            "namespace %s moved to release %s with %d change(s)", namespace, release_key, len(changes)
        )
        self._notify(namespace, old_configs, new_configs, changes)

        state.set(release_key, new_configs)
        state.set_notification_id(notification.notification_id)

    def _notify(
        self,
        namespace: str,
        old_configs: ConfigMap,
        new_configs: ConfigMap,
        changes: List[Change],
    ) -> None:
        ref = self._listener
        callback = ref() if ref is not None else None
        if callback is None:
            return
        try:
            callback(namespace, dict(old_configs), dict(new_configs), list(changes))
        except Exception:
            self._log.exception("notification listener failed for namespace %s", namespace)

    # ------------------------------------------------------------------
    # URL helpers
    # ------------------------------------------------------------------
    def _notifications_url(self) -> str:
        current = [
            Notification(namespace, state.get_notification_id())
            for namespace, state in self._namespaces.items()
        ]
        return notifications_url(
            self._apollo_url, self._app_id, self._opts.cluster_name, self._opts.label, current
        )

    def _configs_url(self, namespace: str, state: NamespaceState, notification_id: int) -> str:
        return configs_url(
            self._apollo_url,
            self._app_id,
            self._opts.cluster_name,
            namespace,
            label=self._opts.label,
            release_key=state.release_key,
            notification_id=notification_id,
        )


def _require_status(response: httpx.Response, url: str) -> None:
    if response.status_code != httpx.codes.OK:
        raise ServerError(f"{url} returned HTTP {response.status_code}", response.status_code)


def make_apollo_client(
    apollo_url: str,
    app_id: str,
    opts: Optional[Opts] = None,
    logger: Optional[logging.Logger] = None,
    *,
    transport: Optional[HttpxTransport] = None,
) -> ApolloClient:
    """Build a client and load its namespaces.

    Raises :class:`~apollo_client.exceptions.ClientInitError` when the
    arguments are invalid or the initial load fails.
    """

    return ApolloClient(apollo_url, app_id, opts, logger=logger, transport=transport)
