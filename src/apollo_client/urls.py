"""URL helpers for the Apollo HTTP API."""

from __future__ import annotations

from typing import Iterable, List, Tuple
from urllib.parse import quote

import httpx

from .cache import UNKNOWN_NOTIFICATION_ID
from .codec import encode_messages, encode_notifications
from .exceptions import InvalidArgument, UnsupportedProtocol
from .types import Notification

NOTIFICATIONS_V2_PATH = "/notifications/v2"
CONFIGS_PATH = "/configs"


def _encode(value: str) -> str:
    # Everything outside the RFC 3986 unreserved set is escaped.
    return quote(value, safe="")


def _with_query(base: str, params: List[Tuple[str, str]]) -> str:
    if not params:
        return base
    query = "&".join(f"{name}={_encode(value)}" for name, value in params)
    return f"{base}?{query}"


def parse_http_url(url: str) -> httpx.URL:
    """Parse ``url`` and ensure it targets plain HTTP."""

    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as exc:
        raise InvalidArgument(f"invalid url {url!r}: {exc}") from exc

    if not parsed.scheme:
        raise InvalidArgument(f"url {url!r} has no scheme")
    if parsed.scheme != "http":
        raise UnsupportedProtocol(f"unsupported scheme {parsed.scheme!r} in {url!r}; only http is supported")
    if not parsed.host:
        raise InvalidArgument(f"url {url!r} has no host")
    return parsed


def validate_base_url(url: str) -> None:
    parse_http_url(url)
    if url.endswith("/"):
        raise InvalidArgument(f"apollo url {url!r} must not end with '/'")


def notifications_url(
    apollo_url: str,
    app_id: str,
    cluster: str,
    label: str,
    notifications: Iterable[Notification],
) -> str:
    params = [
        ("appId", app_id),
        ("cluster", cluster),
        ("notifications", encode_notifications(notifications)),
    ]
    if label:
        params.append(("label", label))
    return _with_query(apollo_url + NOTIFICATIONS_V2_PATH, params)


def configs_path(app_id: str, cluster: str, namespace: str) -> str:
    segments = (app_id, cluster, namespace)
    return CONFIGS_PATH + "".join(f"/{_encode(s)}" for s in segments)


def configs_url(
    apollo_url: str,
    app_id: str,
    cluster: str,
    namespace: str,
    label: str = "",
    release_key: str = "",
    notification_id: int = UNKNOWN_NOTIFICATION_ID,
) -> str:
    """Build the no-cache config URL.

    ``releaseKey`` is only sent once a release is known, and ``messages``
    only when a notification id is known as well.
    """

    params: List[Tuple[str, str]] = []
    if label:
        params.append(("label", label))
    if release_key:
        params.append(("releaseKey", release_key))
        if notification_id != UNKNOWN_NOTIFICATION_ID:
            messages = encode_messages(app_id, cluster, namespace, notification_id)
            params.append(("messages", messages))
    return _with_query(apollo_url + configs_path(app_id, cluster, namespace), params)
