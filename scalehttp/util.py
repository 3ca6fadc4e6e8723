"""Small concurrency and timing helpers shared across the package."""

from __future__ import annotations

import asyncio
import concurrent.futures
import threading
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Generic, Iterator, TypeVar

__all__ = [
    "AtomicValue",
    "Signaler",
    "Stopwatch",
    "HealthChecker",
    "with_timeout",
    "is_ignored_error",
]

T = TypeVar("T")
V = TypeVar("V")

_CANCELLED = (asyncio.CancelledError, concurrent.futures.CancelledError)


async def with_timeout(seconds: float, awaitable: Awaitable[T]) -> T:
    """Await ``awaitable``, raising ``TimeoutError`` if it takes longer than ``seconds``."""
    try:
        return await asyncio.wait_for(awaitable, seconds)
    except asyncio.TimeoutError:
        raise TimeoutError(f"timed out after {seconds}s") from None


class AtomicValue(Generic[V]):
    """A value that can be read and replaced safely from several threads."""

    def __init__(self, value: V | None = None) -> None:
        self._lock = threading.Lock()
        self._value = value

    def get(self) -> V | None:
        with self._lock:
            return self._value

    def set(self, value: V | None) -> None:
        with self._lock:
            self._value = value


def _wake(future: asyncio.Future[None]) -> None:
    if not future.done():
        future.set_result(None)


class Signaler:
    """A one-slot notification: signals coalesce until a waiter consumes them.

    ``signal`` never blocks and may be called from any thread; ``wait`` is
    awaited from an event loop and is cancelled the usual asyncio way.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending = False
        self._waiters: deque[tuple[asyncio.AbstractEventLoop, asyncio.Future[None]]] = deque()

    def _deliver_locked(self) -> None:
        while self._waiters:
            loop, future = self._waiters.popleft()
            if future.done():
                continue
            try:
                loop.call_soon_threadsafe(_wake, future)
            except RuntimeError:
                continue
            return
        self._pending = True

    def signal(self) -> None:
        with self._lock:
            self._deliver_locked()

    async def wait(self) -> None:
        loop = asyncio.get_running_loop()
        with self._lock:
            if self._pending:
                self._pending = False
                return
            future: asyncio.Future[None] = loop.create_future()
            entry = (loop, future)
            self._waiters.append(entry)
        try:
            await future
        except asyncio.CancelledError:
            with self._lock:
                try:
                    self._waiters.remove(entry)
                except ValueError:
                    # A signal was already routed here; hand it on.
                    self._deliver_locked()
            raise


@dataclass
class Stopwatch:
    """Records a start and a stop time."""

    start_time: datetime | None = None
    stop_time: datetime | None = None

    def start(self) -> None:
        self.start_time = datetime.now()

    def stop(self) -> None:
        self.stop_time = datetime.now()

    def elapsed(self) -> timedelta:
        if self.start_time is None or self.stop_time is None:
            raise ValueError("stopwatch must be started and stopped first")
        return self.stop_time - self.start_time


class HealthChecker(ABC):
    """A component that can report whether it is healthy."""

    @abstractmethod
    def health_check(self) -> None:
        """Raise an exception if the component is not healthy."""


def _cause_chain(err: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = err
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__


def is_ignored_error(err: BaseException | None) -> bool:
    """Tell whether ``err`` marks a normal shutdown rather than a failure."""
    if err is None:
        return True
    chain = list(_cause_chain(err))
    if any(isinstance(e, _CANCELLED) for e in chain):
        return True
    from .server import ServerClosedError

    return any(isinstance(e, ServerClosedError) for e in chain)