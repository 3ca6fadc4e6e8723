"""Routing keys built from a host and a URL path."""

from __future__ import annotations

from itertools import product
from urllib.parse import unquote, urlsplit

from ..objects import HTTPScaledObject

__all__ = [
    "new_key",
    "new_key_from_url",
    "new_key_from_request",
    "new_keys_from_httpso",
]


def new_key(host: str, path: str) -> str:
    """Return the routing key ``//host/path/`` with the port and extra slashes removed."""
    if ":" in host:
        host = host.rpartition(":")[0]
    path = path.strip("/")
    if path:
        path += "/"
    return f"//{host}/{path}"


def _host_and_path(url: str) -> tuple[str, str]:
    parts = urlsplit(url)
    return parts.netloc.rpartition("@")[2], unquote(parts.path)


def new_key_from_url(url: str | None) -> str | None:
    """Return the routing key for a URL, or ``None`` for no URL."""
    if url is None:
        return None
    host, path = _host_and_path(url)
    return new_key(host, path)


def new_key_from_request(url: str | None, host: str | None = None) -> str | None:
    """Return the routing key for a request URL; a non-empty ``host`` replaces the URL's host."""
    if url is None:
        return None
    url_host, path = _host_and_path(url)
    return new_key(host or url_host, path)


def new_keys_from_httpso(httpso: HTTPScaledObject | None) -> list[str] | None:
    """Return one key for every host and path prefix pair of the scaled object."""
    if httpso is None:
        return None
    hosts = httpso.hosts if httpso.hosts is not None else [""]
    prefixes = httpso.path_prefixes if httpso.path_prefixes is not None else [""]
    return [new_key(host, prefix) for host, prefix in product(hosts, prefixes)]