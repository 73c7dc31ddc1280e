import gc
import logging

import pytest

from apollo_agent.events import NamespaceChanged
from apollo_agent.listeners import ChangeListener, LoggingChangeListener, create_log_listener
from apollo_agent.registry import ListenerRegistry
from apollo_client.types import Change, ChangeKind


class RecordingListener(ChangeListener):
    def __init__(self):
        self.events = []

    def on_namespace_changed(self, event):
        self.events.append(event)


class FailingListener(ChangeListener):
    def on_namespace_changed(self, event):
        raise RuntimeError("listener exploded")


CHANGES = [
    Change(ChangeKind.UPDATED, "b", "3"),
    Change(ChangeKind.ADDED, "c", "4"),
    Change(ChangeKind.DELETED, "d", "5"),
]


def test_registry_dispatches_events():
    registry = ListenerRegistry()
    first, second = RecordingListener(), RecordingListener()
    registry.register("first", first)
    registry.register("second", second)

    registry("application", {"b": "2", "d": "5"}, {"b": "3", "c": "4"}, CHANGES)

    expected = NamespaceChanged("application", {"b": "2", "d": "5"}, {"b": "3", "c": "4"}, tuple(CHANGES))
    assert first.events == [expected]
    assert second.events == [expected]


def test_registry_rejects_duplicate_registration():
    registry = ListenerRegistry()
    listener = RecordingListener()

    registry.register("log", listener)

    with pytest.raises(ValueError):
        registry.register("log", listener)


def test_registry_unregister():
    registry = ListenerRegistry()
    listener = RecordingListener()
    registry.register("log", listener)

    registry.unregister("log")
    registry.unregister("log")
    registry.handle(NamespaceChanged("application"))

    assert registry.names() == []
    assert listener.events == []


def test_registry_isolates_failing_listener(caplog):
    registry = ListenerRegistry()
    recorder = RecordingListener()
    registry.register("broken", FailingListener())
    registry.register("recorder", recorder)

    with caplog.at_level(logging.ERROR):
        registry.handle(NamespaceChanged("application"))

    assert len(recorder.events) == 1
    assert "listener broken failed" in caplog.text


def test_registry_rejects_unknown_events():
    with pytest.raises(TypeError):
        ListenerRegistry().handle("not an event")


def test_registry_can_be_weakly_referenced():
    import weakref

    registry = ListenerRegistry()
    ref = weakref.ref(registry)

    assert ref() is registry
    del registry
    gc.collect()
    assert ref() is None


def test_logging_listener_reports_each_change(caplog):
    listener = LoggingChangeListener(level=logging.INFO)

    with caplog.at_level(logging.INFO):
        listener.on_namespace_changed(NamespaceChanged("application", changes=tuple(CHANGES)))

    messages = [record.getMessage() for record in caplog.records]
    assert messages == [
        "configuration changed for namespace application",
        "namespace:application Updated: b = 3",
        "namespace:application Added: c = 4",
        "namespace:application Deleted: d",
    ]


def test_create_log_listener_validates_level():
    assert isinstance(create_log_listener({"level": "DEBUG"}), LoggingChangeListener)

    with pytest.raises(ValueError):
        create_log_listener({"level": "loud"})
