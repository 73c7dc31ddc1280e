"""HTTP transport with per-phase timeouts and a whole-request watchdog.

Two call shapes are offered over the same validation and error mapping:

* blocking ``get``/``post`` which return the :class:`httpx.Response` or raise
  an :class:`~apollo_client.exceptions.ApolloError`;
* non-blocking ``get_async``/``post_async`` which run on an asyncio event
  loop and report ``on_done(error, response)`` from that loop.

httpx enforces the connect, write and read timeouts of each phase.  The
asynchronous path additionally arms a watchdog for the whole request when it
starts.  Should the phase timers fail to unblock a stuck request, the
watchdog cancels it, which closes the underlying connection, and the caller
gets a :class:`~apollo_client.exceptions.Timeout` with ``phase="watchdog"``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from threading import Lock
from typing import Callable, Mapping, Optional, Union

import httpx

from .exceptions import (
    ApolloError,
    DecodeError,
    HostUnreachable,
    Timeout,
    TransportError,
    TransportIOError,
    UnsupportedProtocol,
)
from .types import Timeouts
from .urls import parse_http_url

LOG = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/json"

OnDone = Callable[[Optional[BaseException], Optional[httpx.Response]], None]
HttpxTransport = Union[httpx.BaseTransport, httpx.AsyncBaseTransport]

_TIMEOUT_PHASES = (
    (httpx.ConnectTimeout, "connect"),
    (httpx.PoolTimeout, "connect"),
    (httpx.WriteTimeout, "write"),
    (httpx.ReadTimeout, "read"),
)


def translate_error(exc: httpx.RequestError, url: str) -> ApolloError:
    """Map an httpx transport failure onto the package error taxonomy."""

    if isinstance(exc, httpx.UnsupportedProtocol):
        return UnsupportedProtocol(f"{url}: {exc}")
    if isinstance(exc, httpx.TimeoutException):
        phase = next((p for cls, p in _TIMEOUT_PHASES if isinstance(exc, cls)), "read")
        return Timeout(f"{phase} timeout for {url}: {exc}", phase)
    if isinstance(exc, httpx.ConnectError):
        return HostUnreachable(f"cannot reach {url}: {exc}")
    if isinstance(exc, httpx.DecodingError):
        return DecodeError(f"cannot decode response body from {url}: {exc}")
    return TransportIOError(f"request to {url} failed: {exc}")


def _build_headers(
    headers: Optional[Mapping[str, str]],
    body: Optional[str],
    content_type: Optional[str],
) -> dict:
    merged = dict(headers or {})
    if body is not None and content_type:
        merged.setdefault("Content-Type", content_type)
    return merged


class _Watchdog:
    """Cancel ``task`` if it is still running after ``seconds``."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        seconds: Optional[float],
        task: asyncio.Task,
        url: str,
    ) -> None:
        self.fired = False
        self._task = task
        self._url = url
        self._seconds = seconds
        self._handle = loop.call_later(seconds, self._fire) if seconds is not None else None

    def _fire(self) -> None:
        if self._task.done():
            return
        self.fired = True
        LOG.warning("request to %s exceeded watchdog of %.3fs; closing connection", self._url, self._seconds)
        self._task.cancel()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class TimedTransport:
    """Issue HTTP requests bounded by connect/write/read timeouts.

    Parameters
    ----------
    timeouts:
        Initial timeouts.  They can be changed at any time; each request
        reads the current value when it starts.
    transport:
        Optional httpx transport used by both the blocking and the
        asynchronous client, e.g. :class:`httpx.MockTransport` in tests.
    """

    def __init__(
        self,
        timeouts: Optional[Timeouts] = None,
        *,
        transport: Optional[HttpxTransport] = None,
    ) -> None:
        self._lock = Lock()
        self._timeouts = timeouts or Timeouts()
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self._async_client: Optional[httpx.AsyncClient] = None
        self._async_loop: Optional[asyncio.AbstractEventLoop] = None

    # ------------------------------------------------------------------
    # Timeout configuration
    # ------------------------------------------------------------------
    @property
    def timeouts(self) -> Timeouts:
        with self._lock:
            return self._timeouts

    @timeouts.setter
    def timeouts(self, value: Timeouts) -> None:
        with self._lock:
            self._timeouts = value

    def _update_timeouts(self, **changes) -> None:
        with self._lock:
            self._timeouts = replace(self._timeouts, **changes)

    def set_connection_timeout(self, timeout_ms: Optional[int]) -> None:
        self._update_timeouts(connect_ms=timeout_ms)

    def set_read_timeout(self, timeout_ms: Optional[int]) -> None:
        self._update_timeouts(read_ms=timeout_ms)

    def set_write_timeout(self, timeout_ms: Optional[int]) -> None:
        self._update_timeouts(write_ms=timeout_ms)

    def set_watchdog_timeout(self, timeout_ms: Optional[int]) -> None:
        self._update_timeouts(watchdog_ms=timeout_ms)

    # ------------------------------------------------------------------
    # Blocking requests
    # ------------------------------------------------------------------
    def get(self, url: str, headers: Optional[Mapping[str, str]] = None) -> httpx.Response:
        return self.request("GET", url, headers=headers)

    def post(
        self,
        url: str,
        body: str,
        content_type: str = DEFAULT_CONTENT_TYPE,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        return self.request("POST", url, body=body, content_type=content_type, headers=headers)

    def request(
        self,
        method: str,
        url: str,
        *,
        body: Optional[str] = None,
        content_type: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        parse_http_url(url)
        timeouts = self.timeouts
        LOG.debug("%s %s", method, url)
        try:
            return self._sync_client().request(
                method,
                url,
                content=body,
                headers=_build_headers(headers, body, content_type),
                timeout=timeouts.to_httpx(),
            )
        except httpx.RequestError as exc:
            raise translate_error(exc, url) from exc

    def _sync_client(self) -> httpx.Client:
        with self._lock:
            if self._client is None:
                self._client = httpx.Client(transport=self._transport)
            return self._client

    def close(self) -> None:
        """Release the blocking client; it is recreated on next use."""

        with self._lock:
            client, self._client = self._client, None
        if client is not None:
            client.close()

    # ------------------------------------------------------------------
    # Asynchronous requests
    # ------------------------------------------------------------------
    async def request_async(
        self,
        method: str,
        url: str,
        *,
        body: Optional[str] = None,
        content_type: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """Awaitable request guarded by the watchdog."""

        parse_http_url(url)
        timeouts = self.timeouts
        client = self._async_client_for_running_loop()
        loop = asyncio.get_running_loop()

        LOG.debug("%s %s (async)", method, url)
        task = loop.create_task(
            self._send_async(client, method, url, body, _build_headers(headers, body, content_type), timeouts)
        )
        watchdog = _Watchdog(loop, timeouts.watchdog_seconds(), task, url)
        try:
            return await task
        except asyncio.CancelledError:
            if watchdog.fired:
                raise Timeout(f"watchdog expired for {url}", "watchdog") from None
            raise
        finally:
            watchdog.cancel()

    async def _send_async(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        body: Optional[str],
        headers: dict,
        timeouts: Timeouts,
    ) -> httpx.Response:
        try:
            return await client.request(
                method,
                url,
                content=body,
                headers=headers,
                timeout=timeouts.to_httpx(),
            )
        except httpx.RequestError as exc:
            raise translate_error(exc, url) from exc

    def get_async(
        self,
        url: str,
        on_done: OnDone,
        headers: Optional[Mapping[str, str]] = None,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> asyncio.Task:
        return self._start_async("GET", url, on_done, loop=loop, headers=headers)

    def post_async(
        self,
        url: str,
        body: str,
        on_done: OnDone,
        content_type: str = DEFAULT_CONTENT_TYPE,
        headers: Optional[Mapping[str, str]] = None,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> asyncio.Task:
        return self._start_async(
            "POST", url, on_done, loop=loop, body=body, content_type=content_type, headers=headers
        )

    def _start_async(
        self,
        method: str,
        url: str,
        on_done: OnDone,
        *,
        loop: Optional[asyncio.AbstractEventLoop],
        **kwargs,
    ) -> asyncio.Task:
        """Schedule a request on ``loop`` and report through ``on_done``.

        Must be called from the loop's own thread.  ``on_done`` always runs
        on a later loop iteration, never from inside this call.  A task that
        is cancelled (e.g. on shutdown) does not report.
        """

        loop = loop or asyncio.get_running_loop()
        task = loop.create_task(self.request_async(method, url, **kwargs))

        def _complete(done: asyncio.Task) -> None:
            if done.cancelled():
                LOG.debug("%s %s abandoned before completion", method, url)
                return
            exc = done.exception()
            if exc is not None:
                on_done(exc, None)
            else:
                on_done(None, done.result())

        task.add_done_callback(_complete)
        return task

    def _async_client_for_running_loop(self) -> httpx.AsyncClient:
        loop = asyncio.get_running_loop()
        with self._lock:
            if self._async_client is None or self._async_loop is not loop:
                self._async_client = httpx.AsyncClient(transport=self._transport)
                self._async_loop = loop
            return self._async_client

    async def aclose(self) -> None:
        """Close the asynchronous client bound to the current loop."""

        with self._lock:
            client, self._async_client, self._async_loop = self._async_client, None, None
        if client is not None:
            await client.aclose()


__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "TimedTransport",
    "TransportError",
    "translate_error",
]
