import pytest

from apollo_client.codec import (
    decode_configs,
    decode_notification,
    decode_notifications,
    encode_messages,
    encode_notification,
    encode_notifications,
)
from apollo_client.exceptions import DecodeError
from apollo_client.types import Notification


def test_encode_notification_is_compact():
    notification = Notification("test_namespace", 123)

    assert encode_notification(notification) == '{"namespaceName":"test_namespace","notificationId":123}'


def test_decode_notification():
    payload = '{"namespaceName":"test_namespace","notificationId":123}'

    assert decode_notification(payload) == Notification("test_namespace", 123)


def test_encode_notifications():
    notifications = [Notification("ns1", 1), Notification("ns2", 2)]

    assert encode_notifications(notifications) == (
        '[{"namespaceName":"ns1","notificationId":1},'
        '{"namespaceName":"ns2","notificationId":2}]'
    )


def test_decode_notifications():
    payload = '[{"namespaceName":"ns1","notificationId":1},{"namespaceName":"ns2","notificationId":2}]'

    assert decode_notifications(payload) == [Notification("ns1", 1), Notification("ns2", 2)]


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        '{"namespaceName":"ns1","notificationId":1}',
        '[{"namespaceName":"ns1"}]',
        '[{"namespaceName":1,"notificationId":1}]',
        '[{"namespaceName":"ns1","notificationId":"1"}]',
        '[{"namespaceName":"ns1","notificationId":true}]',
        "[1]",
    ],
)
def test_decode_notifications_rejects_malformed(payload):
    with pytest.raises(DecodeError):
        decode_notifications(payload)


def test_decode_configs():
    payload = '{"releaseKey":"rk-1","configurations":{"a":"1","b":"2"}}'

    assert decode_configs(payload) == ("rk-1", {"a": "1", "b": "2"})


def test_decode_configs_ignores_extra_fields():
    payload = (
        '{"appId":"test_app","cluster":"default","namespaceName":"application",'
        '"configurations":{},"releaseKey":"rk-2"}'
    )

    assert decode_configs(payload) == ("rk-2", {})


@pytest.mark.parametrize(
    "payload",
    [
        "",
        "[]",
        '{"configurations":{"a":"1"}}',
        '{"releaseKey":"rk","configurations":[]}',
        '{"releaseKey":"rk","configurations":{"a":1}}',
        '{"releaseKey":null,"configurations":{}}',
    ],
)
def test_decode_configs_rejects_malformed(payload):
    with pytest.raises(DecodeError):
        decode_configs(payload)


def test_decode_error_is_value_error():
    with pytest.raises(ValueError):
        decode_configs("{")


def test_encode_messages():
    assert encode_messages("app", "default", "application", 7) == '{"details":{"app+default+application":7}}'
