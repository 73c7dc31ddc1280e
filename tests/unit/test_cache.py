from threading import Event, Thread

from apollo_client.cache import UNKNOWN_NOTIFICATION_ID, NamespaceState


def test_new_state_has_defaults():
    state = NamespaceState()

    assert state.get() == ("", {})
    assert state.get_notification_id() == UNKNOWN_NOTIFICATION_ID == -1


def test_get_returns_independent_copy():
    state = NamespaceState()
    source = {"a": "1"}
    state.set("rk-1", source)

    source["a"] = "mutated"
    release_key, configs = state.get()
    configs["b"] = "2"

    assert release_key == "rk-1"
    assert state.get() == ("rk-1", {"a": "1"})


def test_notification_id_is_independent_of_configs():
    state = NamespaceState()

    state.set_notification_id(42)

    assert state.get_notification_id() == 42
    assert state.get() == ("", {})


def test_readers_never_see_mixed_release_and_configs():
    state = NamespaceState()
    state.set("rk-0", {"version": "0"})
    stop = Event()
    mismatches = []

    def writer():
        i = 0
        while not stop.is_set():
            i += 1
            state.set(f"rk-{i}", {"version": str(i)})

    def reader():
        for _ in range(5000):
            release_key, configs = state.get()
            if release_key != f"rk-{configs['version']}":
                mismatches.append((release_key, configs))

    writer_thread = Thread(target=writer)
    readers = [Thread(target=reader) for _ in range(4)]
    writer_thread.start()
    for thread in readers:
        thread.start()
    for thread in readers:
        thread.join()
    stop.set()
    writer_thread.join()

    assert mismatches == []
