"""Per-task values: the logger, the matched scaled object and the stream URL."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Iterator, Optional

if TYPE_CHECKING:
    from .objects import HTTPScaledObject

__all__ = [
    "current_logger",
    "bind_logger",
    "bind_logger_name",
    "current_httpso",
    "bind_httpso",
    "current_stream",
    "bind_stream",
]

_DEFAULT_LOGGER = logging.getLogger("scalehttp")

_logger: ContextVar[logging.Logger] = ContextVar("scalehttp_logger")
_httpso: ContextVar[Optional["HTTPScaledObject"]] = ContextVar("scalehttp_httpso", default=None)
_stream: ContextVar[Optional[str]] = ContextVar("scalehttp_stream", default=None)


def current_logger() -> logging.Logger:
    """Return the logger bound in this context, or the package logger."""
    return _logger.get(_DEFAULT_LOGGER)


@contextmanager
def bind_logger(logger: logging.Logger) -> Iterator[logging.Logger]:
    """Make ``logger`` the current logger for the duration of the block."""
    token = _logger.set(logger)
    try:
        yield logger
    finally:
        _logger.reset(token)


@contextmanager
def bind_logger_name(name: str) -> Iterator[logging.Logger]:
    """Bind a child of the current logger with the given name."""
    with bind_logger(current_logger().getChild(name)) as logger:
        yield logger


def current_httpso() -> Optional["HTTPScaledObject"]:
    """Return the scaled object bound in this context, if any."""
    return _httpso.get()


@contextmanager
def bind_httpso(httpso: Optional["HTTPScaledObject"]) -> Iterator[Optional["HTTPScaledObject"]]:
    """Make ``httpso`` the current scaled object for the duration of the block."""
    token = _httpso.set(httpso)
    try:
        yield httpso
    finally:
        _httpso.reset(token)


def current_stream() -> Optional[str]:
    """Return the upstream URL bound in this context, if any."""
    return _stream.get()


@contextmanager
def bind_stream(url: Optional[str]) -> Iterator[Optional[str]]:
    """Make ``url`` the current upstream URL for the duration of the block."""
    token = _stream.set(url)
    try:
        yield url
    finally:
        _stream.reset(token)