"""TCP dialing with exponential backoff between retries."""

from __future__ import annotations

import asyncio
import random
import socket
from dataclasses import dataclass, replace
from typing import Awaitable, Callable

__all__ = [
    "Backoff",
    "Dialer",
    "min_total_backoff_duration",
    "dial_with_retry",
]

Connection = tuple[asyncio.StreamReader, asyncio.StreamWriter]

_DEFAULT_KEEP_ALIVE = 15.0


def _jitter(duration: float, max_factor: float) -> float:
    if max_factor <= 0:
        max_factor = 1.0
    return duration + random.random() * max_factor * duration


@dataclass
class Backoff:
    """Exponential backoff parameters; durations are in seconds.

    ``step`` consumes one step and returns the wait before the next attempt.
    """

    duration: float
    factor: float = 0.0
    jitter: float = 0.0
    steps: int = 0
    cap: float = 0.0

    def step(self) -> float:
        if self.steps < 1:
            if self.jitter > 0:
                return _jitter(self.duration, self.jitter)
            return self.duration
        self.steps -= 1
        duration = self.duration
        if self.factor != 0:
            self.duration = self.duration * self.factor
            if 0 < self.cap < self.duration:
                self.duration = self.cap
                self.steps = 0
        if self.jitter > 0:
            duration = _jitter(duration, self.jitter)
        return duration


def min_total_backoff_duration(backoff: Backoff) -> float:
    """Return the least total wait over all steps, ignoring jitter, in seconds."""
    initial_ms = int(backoff.duration * 1000)
    total_ms = initial_ms + sum(initial_ms * i for i in range(2, backoff.steps + 1))
    return total_ms / 1000


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"address {address!r}: missing or invalid port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, int(port)


@dataclass
class Dialer:
    """Opens TCP connections with a connect timeout and keep-alive, in seconds.

    A ``keep_alive`` of zero uses the default period; a negative one disables it.
    A ``timeout`` of zero or less means no timeout.
    """

    timeout: float = 0.0
    keep_alive: float = 0.0

    async def dial(self, address: str) -> Connection:
        host, port = _split_address(address)
        opening = asyncio.open_connection(host, port)
        try:
            if self.timeout > 0:
                reader, writer = await asyncio.wait_for(opening, self.timeout)
            else:
                reader, writer = await opening
        except asyncio.TimeoutError:
            raise TimeoutError(f"dial {address}: timed out after {self.timeout}s") from None
        if self.keep_alive >= 0:
            self._enable_keep_alive(writer.get_extra_info("socket"))
        return reader, writer

    def _enable_keep_alive(self, sock: socket.socket | None) -> None:
        if sock is None:
            return
        period = max(1, int(self.keep_alive or _DEFAULT_KEEP_ALIVE))
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
        if hasattr(socket, "TCP_KEEPIDLE"):
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, period)
        if hasattr(socket, "TCP_KEEPINTVL"):
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, period)


def dial_with_retry(
    dialer: Dialer, backoff: Backoff
) -> Callable[[str], Awaitable[Connection]]:
    """Return a dial function that retries ``backoff.steps`` times, sleeping between tries.

    Each call starts from a fresh copy of ``backoff``. When every try fails,
    the last error is raised. Cancelling the caller cancels the retries.
    """
    tries = backoff.steps

    async def dial(address: str) -> Connection:
        schedule = replace(backoff)
        last_error: BaseException | None = None
        for _ in range(tries):
            try:
                return await dialer.dial(address)
            except OSError as err:
                last_error = err
            await asyncio.sleep(schedule.step())
        if last_error is None:
            raise ConnectionError(f"dial {address}: no attempts were made")
        raise last_error

    return dial