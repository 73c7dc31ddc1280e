import json
from threading import Lock

import httpx
import pytest

APOLLO_URL = "http://apollo.test:8080"
APP_ID = "test_app"


class FakeApolloServer:
    """In-process stand-in for the Apollo config service.

    Notification polls answer immediately: 200 with the namespaces whose
    notification id is ahead of the client, 304 otherwise.
    """

    def __init__(self, namespaces=None):
        self._lock = Lock()
        self.namespaces = {}
        self.requests = []
        self.config_status = 200
        self.notification_status = None
        self.extra_notifications = []
        for name, configs in (namespaces or {"application": {}}).items():
            self.namespaces[name] = {"configs": dict(configs), "release": 1, "notification_id": 1}
        self.transport = httpx.MockTransport(self.handle)

    def publish(self, namespace, configs):
        with self._lock:
            entry = self.namespaces.setdefault(
                namespace, {"configs": {}, "release": 0, "notification_id": 0}
            )
            entry["configs"] = dict(configs)
            entry["release"] += 1
            entry["notification_id"] += 1

    def paths(self, prefix):
        with self._lock:
            return [r.url.path for r in self.requests if r.url.path.startswith(prefix)]

    def handle(self, request):
        with self._lock:
            self.requests.append(request)
            path = request.url.path
            if path == "/notifications/v2":
                return self._notifications(request)
            if path.startswith("/configs/"):
                return self._configs(path)
            return httpx.Response(404)

    def _notifications(self, request):
        if self.notification_status is not None:
            return httpx.Response(self.notification_status)
        sent = json.loads(request.url.params["notifications"])
        changed = []
        for item in sent:
            entry = self.namespaces.get(item["namespaceName"])
            if entry and entry["notification_id"] > item["notificationId"]:
                changed.append(
                    {"namespaceName": item["namespaceName"], "notificationId": entry["notification_id"]}
                )
        changed.extend(self.extra_notifications)
        if not changed:
            return httpx.Response(304)
        return httpx.Response(200, json=changed)

    def _configs(self, path):
        if self.config_status != 200:
            return httpx.Response(self.config_status)
        _, _, app_id, cluster, namespace = path.split("/")
        entry = self.namespaces.get(namespace)
        if entry is None:
            return httpx.Response(404)
        return httpx.Response(
            200,
            json={
                "appId": app_id,
                "cluster": cluster,
                "namespaceName": namespace,
                "configurations": entry["configs"],
                "releaseKey": f"rk-{entry['release']}",
            },
        )


@pytest.fixture
def apollo_server():
    return FakeApolloServer({"application": {"a": "1", "b": "2"}, "db": {"host": "localhost"}})
