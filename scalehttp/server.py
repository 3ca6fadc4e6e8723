"""Serving a WSGI application until told to stop."""

from __future__ import annotations

import threading
from socketserver import ThreadingMixIn
from typing import Any, Callable
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from .context import current_logger

__all__ = ["ServerClosedError", "serve_until"]

_POLL_INTERVAL = 0.05


class ServerClosedError(Exception):
    """Raised by :func:`serve_until` once the server has been shut down."""

    def __init__(self, message: str = "server closed") -> None:
        super().__init__(message)


class _QuietHandler(WSGIRequestHandler):
    def log_message(self, format: str, *args: Any) -> None:
        current_logger().debug("%s - %s", self.address_string(), format % args)


class _ThreadingServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"address {address!r}: missing or invalid port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, int(port)


def serve_until(address: str, app: Callable[..., Any], stop: threading.Event) -> None:
    """Serve ``app`` on ``host:port`` until ``stop`` is set.

    Always ends by raising: ``ServerClosedError`` after a shutdown, or the
    error that prevented serving.
    """
    host, port = _split_address(address)
    logger = current_logger()
    server = make_server(
        host, port, app, server_class=_ThreadingServer, handler_class=_QuietHandler
    )

    def shut_down_when_stopped() -> None:
        stop.wait()
        try:
            server.shutdown()
        except Exception:
            logger.exception("failed shutting down server")

    threading.Thread(target=shut_down_when_stopped, daemon=True).start()
    try:
        server.serve_forever(poll_interval=_POLL_INTERVAL)
    finally:
        server.server_close()
    raise ServerClosedError()