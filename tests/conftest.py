import json
from typing import Any, Dict, List, Optional

import pytest

from errors import TransportError
from sources.base import BaseSource, FetchResult


def make_snapshot(interface: str, neighbours: Optional[List[Dict[str, Any]]] = None, **extra) -> Dict[str, Any]:
    snapshot = {
        "interface": interface,
        "timestamp": "2026-01-01T12:00:00Z",
        "neighbours": neighbours if neighbours is not None else [],
    }
    snapshot.update(extra)
    return snapshot


def make_neighbour(mac: str, ipv4=None, ipv6=None,
                   first_seen="2026-01-01T11:00:00Z", last_seen="2026-01-01T12:00:00Z") -> Dict[str, Any]:
    entry = {"mac": mac, "first_seen": first_seen, "last_seen": last_seen}
    if ipv4 is not None:
        entry["ipv4"] = ipv4
    if ipv6 is not None:
        entry["ipv6"] = ipv6
    return entry


class FakeSource(BaseSource):
    """In-memory origin that honours If-Modified-Since using a version counter."""

    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.versions: Dict[str, int] = {}
        self.status_overrides: Dict[str, int] = {}
        self.listing_error: Optional[TransportError] = None
        self.requests: List[tuple] = []
        self.ui_config: Dict[str, Any] = {}
        self.username = ""

    def put(self, name: str, data: Any) -> None:
        self.files[name] = data if isinstance(data, bytes) else json.dumps(data).encode()
        self.versions[name] = self.versions.get(name, 0) + 1

    def remove(self, name: str) -> None:
        self.files.pop(name, None)
        self.versions.pop(name, None)

    def last_modified(self, name: str) -> str:
        return f"v{self.versions[name]}"

    def list_files(self):
        self.requests.append(("list",))
        if self.listing_error:
            raise self.listing_error
        return [{"name": name, "type": "file", "mtime": self.last_modified(name), "size": len(body)}
                for name, body in self.files.items()]

    def fetch(self, name, if_modified_since=None):
        self.requests.append(("fetch", name, if_modified_since))
        if name in self.status_overrides:
            return FetchResult(name=name, status=self.status_overrides[name])
        if name not in self.files:
            return FetchResult(name=name, status=404)
        if if_modified_since == self.last_modified(name):
            return FetchResult(name=name, status=304)
        return FetchResult(name=name, status=200, last_modified=self.last_modified(name), body=self.files[name])

    def fetch_config(self):
        return self.ui_config

    def whoami(self):
        return self.username

    def fetches(self, conditional: Optional[bool] = None) -> List[tuple]:
        calls = [r for r in self.requests if r[0] == "fetch"]
        if conditional is True:
            return [r for r in calls if r[2] is not None]
        if conditional is False:
            return [r for r in calls if r[2] is None]
        return calls


@pytest.fixture
def fake_source():
    return FakeSource()
