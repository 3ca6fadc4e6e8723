"""Counting pending HTTP requests per host."""

from __future__ import annotations

import json
import queue as _stdqueue
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

__all__ = [
    "Counts",
    "CountReader",
    "Memory",
    "HostAndCount",
    "FakeCounter",
    "FakeCountReader",
]

_SAMPLE_HOST = "sample.com"


@dataclass
class Counts:
    """A snapshot of the pending request count for each host."""

    counts: dict[str, int] = field(default_factory=dict)

    def aggregate(self) -> int:
        """Return the total count across all hosts."""
        return sum(self.counts.values())

    def to_json(self) -> str:
        """Return the counts as a JSON object mapping host to count."""
        return json.dumps(self.counts)

    @classmethod
    def from_json(cls, data: str | bytes) -> Counts:
        """Build counts from a JSON object mapping host to integer count."""
        decoded: Any = json.loads(data)
        if decoded is None:
            return cls()
        if not isinstance(decoded, dict):
            raise ValueError("queue counts must be a JSON object")
        for host, count in decoded.items():
            if isinstance(count, bool) or not isinstance(count, int):
                raise ValueError(f"count for host {host!r} is not an integer: {count!r}")
        return cls(dict(decoded))

    def __str__(self) -> str:
        items = " ".join(f"{host}:{count}" for host, count in sorted(self.counts.items()))
        return f"map[{items}]"


class CountReader(ABC):
    """Something that can report the current pending request counts."""

    @abstractmethod
    def current(self) -> Counts:
        """Return a snapshot of the counts."""


class Memory(CountReader):
    """A thread-safe in-memory request queue counter."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: dict[str, int] = {}

    def resize(self, host: str, delta: int) -> None:
        """Change the count for ``host`` by ``delta``."""
        with self._lock:
            self._counts[host] = self._counts.get(host, 0) + delta

    def ensure(self, host: str) -> None:
        """Make sure ``host`` is present, setting it to zero if it is missing."""
        with self._lock:
            self._counts.setdefault(host, 0)

    def remove(self, host: str) -> bool:
        """Remove ``host`` and tell whether it was present."""
        with self._lock:
            return self._counts.pop(host, None) is not None

    def current(self) -> Counts:
        with self._lock:
            return Counts(dict(self._counts))


@dataclass(frozen=True)
class HostAndCount:
    host: str
    count: int


class FakeCounter(CountReader):
    """A counter for tests that reports every resize on the ``resized`` queue.

    The queue holds one report; ``resize`` raises ``TimeoutError`` if the
    previous report is not taken within ``resize_timeout`` seconds.
    """

    def __init__(self, resize_timeout: float = 1.0) -> None:
        self._lock = threading.Lock()
        self.ret_map: dict[str, int] = {}
        self.resized: _stdqueue.Queue[HostAndCount] = _stdqueue.Queue(maxsize=1)
        self.resize_timeout = resize_timeout

    def resize(self, host: str, delta: int) -> None:
        with self._lock:
            self.ret_map[host] = self.ret_map.get(host, 0) + delta
        try:
            self.resized.put(HostAndCount(host, delta), timeout=self.resize_timeout)
        except _stdqueue.Full:
            raise TimeoutError(
                f"FakeCounter.resize timeout after {self.resize_timeout}s"
            ) from None

    def ensure(self, host: str) -> None:
        with self._lock:
            self.ret_map[host] = 0

    def remove(self, host: str) -> bool:
        with self._lock:
            return self.ret_map.pop(host, None) is not None

    def current(self) -> Counts:
        with self._lock:
            return Counts(dict(self.ret_map))


@dataclass
class FakeCountReader(CountReader):
    """A reader for tests that reports ``count`` for one sample host, or raises ``error``."""

    count: int = 0
    error: Exception | None = None

    def current(self) -> Counts:
        if self.error is not None:
            raise self.error
        return Counts({_SAMPLE_HOST: self.count})