"""JSON payloads exchanged with the Apollo config service."""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Tuple

from .exceptions import DecodeError
from .types import ConfigMap, Notification


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _loads(payload: str) -> Any:
    try:
        return json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"payload is not valid JSON: {exc}") from exc


def _notification_from_item(item: Any) -> Notification:
    if not isinstance(item, dict):
        raise DecodeError(f"notification must be an object, got {type(item).__name__}")
    name = item.get("namespaceName")
    notification_id = item.get("notificationId")
    if not isinstance(name, str):
        raise DecodeError("notification missing string 'namespaceName'")
    # bool is an int subclass; reject it explicitly
    if not isinstance(notification_id, int) or isinstance(notification_id, bool):
        raise DecodeError(f"notification for {name!r} missing integer 'notificationId'")
    return Notification(namespace_name=name, notification_id=notification_id)


def _notification_to_item(notification: Notification) -> dict:
    return {
        "namespaceName": notification.namespace_name,
        "notificationId": notification.notification_id,
    }


def encode_notification(notification: Notification) -> str:
    return _dumps(_notification_to_item(notification))


def decode_notification(payload: str) -> Notification:
    return _notification_from_item(_loads(payload))


def encode_notifications(notifications: Iterable[Notification]) -> str:
    return _dumps([_notification_to_item(n) for n in notifications])


def decode_notifications(payload: str) -> List[Notification]:
    data = _loads(payload)
    if not isinstance(data, list):
        raise DecodeError("notification payload must be a JSON array")
    return [_notification_from_item(item) for item in data]


def decode_configs(payload: str) -> Tuple[str, ConfigMap]:
    """Decode a no-cache config response into ``(release_key, configs)``."""

    data = _loads(payload)
    if not isinstance(data, dict):
        raise DecodeError("config payload must be a JSON object")

    release_key = data.get("releaseKey")
    if not isinstance(release_key, str):
        raise DecodeError("config payload missing string 'releaseKey'")

    configurations = data.get("configurations")
    if not isinstance(configurations, dict):
        raise DecodeError("config payload missing 'configurations' object")

    configs: ConfigMap = {}
    for key, value in configurations.items():
        if not isinstance(value, str):
            raise DecodeError(f"configuration {key!r} has non-string value")
        configs[key] = value
    return release_key, configs


def encode_messages(app_id: str, cluster: str, namespace: str, notification_id: int) -> str:
    """Build the ``messages`` query payload for a no-cache config fetch."""

    return _dumps({"details": {f"{app_id}+{cluster}+{namespace}": notification_id}})
