import json
import socket
import threading
import time
from contextlib import contextmanager
from wsgiref.util import setup_testing_defaults

import pytest

from scalehttp.queue import FakeCountReader
from scalehttp.queue_rpc import add_counts_route, counts_app, get_counts
from scalehttp.server import ServerClosedError, serve_until


def _call(app, path="/queue"):
    environ = {"PATH_INFO": path, "REQUEST_METHOD": "GET"}
    setup_testing_defaults(environ)
    captured = {}

    def start_response(status, headers):
        captured["status"] = status
        captured["headers"] = headers

    body = b"".join(app(environ, start_response))
    return int(captured["status"].split()[0]), body


def _free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def _wait_listening(port, deadline=5.0):
    end = time.monotonic() + deadline
    while time.monotonic() < end:
        try:
            with socket.create_connection(("127.0.0.1", port), timeout=0.2):
                return
        except OSError:
            time.sleep(0.02)
    raise AssertionError("server did not start listening")


@contextmanager
def _running(app):
    port = _free_port()
    stop = threading.Event()
    errors = []

    def run():
        try:
            serve_until(f"127.0.0.1:{port}", app, stop)
        except BaseException as err:
            errors.append(err)

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    _wait_listening(port)
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        stop.set()
        thread.join(5)
    assert len(errors) == 1 and isinstance(errors[0], ServerClosedError)


def test_size_handler_success_then_failure():
    reader = FakeCountReader(count=123)
    app = counts_app(reader)
    status, body = _call(app)
    assert status == 200
    assert json.loads(body) == {"sample.com": 123}

    reader.error = RuntimeError("test error")
    status, _ = _call(app)
    assert status == 500


def test_size_handler_fail():
    app = counts_app(FakeCountReader(count=0, error=RuntimeError("test error")))
    status, body = _call(app)
    assert status == 500
    assert body == b"error getting queue size"


def test_add_counts_route():
    routes = {}
    add_counts_route(routes, FakeCountReader(count=4))
    assert list(routes) == ["/queue"]
    status, body = _call(routes["/queue"])
    assert status == 200
    assert json.loads(body) == {"sample.com": 4}


def test_size_handler_integration():
    reader = FakeCountReader(count=50)
    inner = counts_app(reader)
    seen_paths = []

    def recording_app(environ, start_response):
        seen_paths.append(environ["PATH_INFO"])
        return inner(environ, start_response)

    with _running(recording_app) as base_url:
        counts = get_counts(base_url)
    assert counts.counts == {"sample.com": 50}
    assert seen_paths == ["/queue"]


def test_get_counts_rejects_error_response():
    app = counts_app(FakeCountReader(error=RuntimeError("test error")))
    with _running(app) as base_url:
        with pytest.raises(ValueError):
            get_counts(base_url)


def test_get_counts_connection_failure():
    with pytest.raises(ConnectionError):
        get_counts(f"http://127.0.0.1:{_free_port()}", timeout=2)