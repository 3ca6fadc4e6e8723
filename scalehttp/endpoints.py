"""Service endpoints, a fake endpoints cache and a fake watch stream."""

from __future__ import annotations

import copy
import enum
import json
import threading
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Callable, Iterator
from urllib.parse import urlsplit

__all__ = [
    "EndpointAddress",
    "EndpointPort",
    "EndpointSubset",
    "Endpoints",
    "EventType",
    "WatchEvent",
    "FakeWatcher",
    "EndpointsNotFoundError",
    "EndpointsCache",
    "FakeEndpointsCache",
    "endpoints_for_service",
    "fake_endpoints_for_url",
    "fake_endpoints_for_urls",
]

_WATCH_BUFFER = 100
_FAKE_IP = "1.2.3.4"


@dataclass
class EndpointAddress:
    ip: str
    hostname: str = ""


@dataclass
class EndpointPort:
    port: int
    name: str = ""


@dataclass
class EndpointSubset:
    addresses: list[EndpointAddress] = field(default_factory=list)
    ports: list[EndpointPort] = field(default_factory=list)


@dataclass
class Endpoints:
    namespace: str = ""
    name: str = ""
    subsets: list[EndpointSubset] = field(default_factory=list)


class EventType(enum.Enum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    ERROR = "ERROR"


@dataclass(frozen=True)
class WatchEvent:
    type: EventType
    object: object


class FakeWatcher:
    """A buffered watch stream fed by hand.

    Events sent after :meth:`stop` are dropped; sending to a full buffer raises
    ``RuntimeError``. Iterating :meth:`events` blocks until an event arrives
    and ends once the watcher is stopped and drained.
    """

    def __init__(self, capacity: int = _WATCH_BUFFER) -> None:
        self._capacity = capacity
        self._events: deque[WatchEvent] = deque()
        self._cond = threading.Condition()
        self._stopped = False

    @property
    def stopped(self) -> bool:
        with self._cond:
            return self._stopped

    def _send(self, event_type: EventType, obj: object) -> None:
        with self._cond:
            if self._stopped:
                return
            if len(self._events) >= self._capacity:
                raise RuntimeError("watch channel full")
            self._events.append(WatchEvent(event_type, obj))
            self._cond.notify_all()

    def add(self, obj: object) -> None:
        self._send(EventType.ADDED, obj)

    def modify(self, obj: object) -> None:
        self._send(EventType.MODIFIED, obj)

    def delete(self, obj: object) -> None:
        self._send(EventType.DELETED, obj)

    def stop(self) -> None:
        with self._cond:
            self._stopped = True
            self._cond.notify_all()

    def events(self) -> Iterator[WatchEvent]:
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._events or self._stopped)
                if not self._events:
                    return
                event = self._events.popleft()
            yield event


class EndpointsNotFoundError(LookupError):
    """Raised when the requested endpoints are not in the cache."""

    def __init__(self, name: str) -> None:
        super().__init__(f"no endpoints {name} found")
        self.name = name


class EndpointsCache(ABC):
    """A local cache of endpoints that can be read and watched."""

    @abstractmethod
    def get(self, namespace: str, name: str) -> Endpoints:
        """Return the named endpoints."""

    @abstractmethod
    def watch(self, namespace: str, name: str) -> FakeWatcher:
        """Return a watch stream for the named endpoints."""

    @abstractmethod
    def to_json(self) -> str:
        """Return a JSON summary of the cache."""


def _key(namespace: str, name: str) -> str:
    return f"{namespace}/{name}"


class FakeEndpointsCache(EndpointsCache):
    """An in-memory endpoints cache for tests, with hand-driven watchers."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._current: dict[str, Endpoints] = {}
        self._watchers: dict[str, FakeWatcher] = {}

    def get_watcher(self, namespace: str, name: str) -> FakeWatcher | None:
        """Return the watcher registered for the endpoints, or ``None``."""
        with self._lock:
            return self._watchers.get(_key(namespace, name))

    def to_json(self) -> str:
        """Return a JSON object mapping each cached key to its address count."""
        with self._lock:
            totals = {
                key: sum(len(subset.addresses) for subset in endpoints.subsets)
                for key, endpoints in self._current.items()
            }
        return json.dumps(totals, sort_keys=True)

    def get(self, namespace: str, name: str) -> Endpoints:
        with self._lock:
            try:
                return copy.deepcopy(self._current[_key(namespace, name)])
            except KeyError:
                raise EndpointsNotFoundError(name) from None

    def set(self, endpoints: Endpoints) -> None:
        """Store endpoints without notifying any watcher."""
        with self._lock:
            self._current[_key(endpoints.namespace, endpoints.name)] = endpoints

    def watch(self, namespace: str, name: str) -> FakeWatcher:
        with self._lock:
            return self._watchers.setdefault(_key(namespace, name), FakeWatcher())

    def set_watcher(self, namespace: str, name: str) -> FakeWatcher:
        """Register and return a fresh watcher for the endpoints."""
        watcher = FakeWatcher()
        with self._lock:
            self._watchers[_key(namespace, name)] = watcher
        return watcher

    def set_subsets(self, namespace: str, name: str, num: int) -> None:
        """Replace the subsets of cached endpoints with ``num`` one-address subsets."""
        endpoints = self.get(namespace, name)
        subsets = [EndpointSubset(addresses=[EndpointAddress(ip=_FAKE_IP)]) for _ in range(num)]
        self.set(replace(endpoints, subsets=subsets))


def endpoints_for_service(
    namespace: str,
    service_name: str,
    service_port: str,
    get_endpoints: Callable[[str, str], Endpoints],
) -> list[str]:
    """Return an ``http://ip:port`` URL for every address behind the service."""
    endpoints = get_endpoints(namespace, service_name)
    urls = []
    for subset in endpoints.subsets:
        for address in subset.addresses:
            url = f"http://{address.ip}:{service_port}"
            urlsplit(url).port  # raises ValueError on a malformed port
            urls.append(url)
    return urls


def _host_and_port(url: str) -> tuple[str, int]:
    host_port = urlsplit(url).netloc.rpartition("@")[2]
    if host_port.startswith("["):
        host, _, rest = host_port[1:].partition("]")
        port = rest[1:] if rest.startswith(":") else ""
    elif ":" in host_port:
        host, _, port = host_port.rpartition(":")
    else:
        host, port = host_port, ""
    if not port.isdigit():
        raise ValueError(f"invalid port {port!r} in URL {url!r}")
    return host, int(port)


def fake_endpoints_for_url(url: str, namespace: str, name: str, num: int) -> Endpoints:
    """Return endpoints with one subset holding ``num`` addresses of ``url``'s host."""
    return fake_endpoints_for_urls([url] * num, namespace, name)


def fake_endpoints_for_urls(urls: list[str], namespace: str, name: str) -> Endpoints:
    """Return endpoints with one subset holding an address and port for each URL."""
    addresses = []
    ports = []
    for url in urls:
        host, port = _host_and_port(url)
        addresses.append(EndpointAddress(ip=host, hostname=host))
        ports.append(EndpointPort(port=port))
    return Endpoints(
        namespace=namespace,
        name=name,
        subsets=[EndpointSubset(addresses=addresses, ports=ports)],
    )