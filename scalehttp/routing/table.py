"""A routing table kept up to date from scaled object events."""

from __future__ import annotations

import asyncio
import threading
from typing import Callable

from ..objects import HTTPScaledObject, NamespacedName
from ..util import AtomicValue, HealthChecker, Signaler
from .key import new_key_from_request
from .tablememory import TableMemory

__all__ = ["TableNotSyncedError", "Table"]

_SYNC_POLL_INTERVAL = 1.0


class TableNotSyncedError(RuntimeError):
    """Raised by a health check before the table has built its first routes."""

    def __init__(self) -> None:
        super().__init__("table has not synced")


def _always_synced() -> bool:
    return True


class Table(HealthChecker):
    """Routes requests to scaled objects.

    Events are fed through ``on_add``, ``on_update`` and ``on_delete`` from
    any thread; ``start`` rebuilds the routes after every change once
    ``handler_synced`` reports that the initial objects have been delivered.
    """

    def __init__(self, handler_synced: Callable[[], bool] | None = None) -> None:
        self._handler_synced = handler_synced or _always_synced
        self._lock = threading.Lock()
        self._httpsos: dict[NamespacedName, HTTPScaledObject] = {}
        self._memory: AtomicValue[TableMemory] = AtomicValue()
        self._signaler = Signaler()
        self._start_lock = threading.Lock()
        self._started = False

    def on_add(self, obj: object) -> None:
        if not isinstance(obj, HTTPScaledObject):
            return
        with self._lock:
            self._httpsos[obj.namespaced_name()] = obj
        self._signaler.signal()

    def on_update(self, old_obj: object, new_obj: object) -> None:
        if not isinstance(old_obj, HTTPScaledObject) or not isinstance(new_obj, HTTPScaledObject):
            return
        old_key = old_obj.namespaced_name()
        new_key = new_obj.namespaced_name()
        with self._lock:
            self._httpsos[new_key] = new_obj
            if old_key != new_key:
                self._httpsos.pop(old_key, None)
        self._signaler.signal()

    def on_delete(self, obj: object) -> None:
        if not isinstance(obj, HTTPScaledObject):
            return
        with self._lock:
            self._httpsos.pop(obj.namespaced_name(), None)
        self._signaler.signal()

    def _new_memory(self) -> TableMemory:
        with self._lock:
            httpsos = list(self._httpsos.values())
        memory = TableMemory()
        for httpso in httpsos:
            memory = memory.remember(httpso)
        return memory

    async def start(self) -> None:
        """Keep the routes current until cancelled; may be started only once."""
        with self._start_lock:
            if self._started:
                raise RuntimeError("table has started, run more than once is not allowed")
            self._started = True

        while not self._handler_synced():
            await asyncio.sleep(_SYNC_POLL_INTERVAL)

        while True:
            self._memory.set(self._new_memory())
            await self._signaler.wait()

    def route(self, url: str | None, host: str | None = None) -> HTTPScaledObject | None:
        """Return the scaled object for a request URL and Host header, or ``None``."""
        memory = self._memory.get()
        if memory is None:
            return None
        return memory.route(new_key_from_request(url, host))

    def has_synced(self) -> bool:
        return self._memory.get() is not None

    def health_check(self) -> None:
        if not self.has_synced():
            raise TableNotSyncedError()