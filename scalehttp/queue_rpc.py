"""Serving and fetching queue counts over HTTP."""

from __future__ import annotations

import urllib.error
import urllib.request
from typing import Any, Callable, Iterable, MutableMapping
from urllib.parse import urlsplit, urlunsplit

from .context import current_logger
from .queue import CountReader, Counts

__all__ = ["COUNTS_PATH", "counts_app", "add_counts_route", "get_counts"]

COUNTS_PATH = "/queue"

WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]


def _respond(
    start_response: Callable[..., Any], status: str, body: bytes, content_type: str
) -> list[bytes]:
    start_response(
        status,
        [("Content-Type", content_type), ("Content-Length", str(len(body)))],
    )
    return [body]


def counts_app(reader: CountReader) -> WSGIApp:
    """Return a WSGI application that answers with the reader's counts as JSON."""
    logger = current_logger()

    def app(environ: dict, start_response: Callable[..., Any]) -> list[bytes]:
        try:
            counts = reader.current()
        except Exception:
            logger.exception("getting queue size")
            return _respond(
                start_response, "500 Internal Server Error", b"error getting queue size", "text/plain"
            )
        try:
            body = (counts.to_json() + "\n").encode()
        except (TypeError, ValueError):
            logger.exception("encoding queue counts")
            return _respond(
                start_response, "500 Internal Server Error", b"error encoding queue counts", "text/plain"
            )
        return _respond(start_response, "200 OK", body, "application/json")

    return app


def add_counts_route(routes: MutableMapping[str, WSGIApp], reader: CountReader) -> None:
    """Register the counts application under the counts path in ``routes``."""
    current_logger().getChild("queue").info("adding queue counts route path=%s", COUNTS_PATH)
    routes[COUNTS_PATH] = counts_app(reader)


def get_counts(base_url: str, timeout: float = 10.0) -> Counts:
    """Fetch the queue counts from the server at ``base_url``.

    Raises ``ConnectionError`` if the request fails and ``ValueError`` if the
    response is not valid counts.
    """
    parts = urlsplit(base_url)
    url = urlunsplit(parts._replace(path=COUNTS_PATH))
    try:
        with urllib.request.urlopen(url, timeout=timeout) as resp:
            body = resp.read()
    except urllib.error.HTTPError as err:
        body = err.read()
        err.close()
    except OSError as err:
        raise ConnectionError(f"requesting the queue counts from {url}: {err}") from err
    try:
        return Counts.from_json(body)
    except ValueError as err:
        raise ValueError(f"decoding response from the interceptor at {url}: {err}") from err