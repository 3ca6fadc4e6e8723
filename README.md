# scalehttp

A library of pieces for putting HTTP applications behind an autoscaler:

- routing keys built from a host and a URL path, and an immutable table that
  routes a request to the HTTP scaled object owning the longest matching
  prefix;
- a live routing table fed by add, update and delete events;
- thread-safe counters of pending requests per host, and a WSGI application
  that publishes them as JSON;
- helpers for service endpoints, including an in-memory endpoints cache with
  hand-driven watch streams;
- a TCP dialer that retries with exponential backoff;
- typed settings from environment variables and a few concurrency helpers.

It needs nothing beyond the standard library.

## Install

    pip install .

For the test suite:

    pip install ".[test]"
    pytest

## Routing

`scalehttp.objects.HTTPScaledObject` describes which hosts and path prefixes
belong to a workload. Leaving `hosts` or `path_prefixes` as `None` matches any
host or any path.

`scalehttp.routing.key.new_key(host, path)` turns a host and path into a key
of the form `//host/path/`: the port is dropped and leading and trailing
slashes on the path are collapsed. `new_key_from_url` and
`new_key_from_request(url, host)` build the same key from a URL, the latter
letting a non-empty Host header replace the URL's host.

```python
from scalehttp.objects import HTTPScaledObject
from scalehttp.routing.key import new_key_from_url
from scalehttp.routing.tablememory import TableMemory

httpso = HTTPScaledObject(
    name="api", namespace="default", hosts=["example.com"], path_prefixes=["api"]
)
memory = TableMemory().remember(httpso)   # a new TableMemory
owner = memory.route(new_key_from_url("https://example.com:443/api/users"))
assert owner == httpso
```

`TableMemory` is immutable: `remember` and `forget` return new tables, and
`recall(namespaced_name)` returns a copy of what was stored. When two scaled
objects claim the same key, the one with the earlier `creation_timestamp`
keeps it; `forget` only drops keys held by the object being forgotten.

`scalehttp.routing.table.Table` holds the live set of scaled objects. Feed it
with `on_add`, `on_update` and `on_delete` from any thread, and run `start()`
as an asyncio task; it rebuilds a fresh `TableMemory` after every change and
may be started only once. `route(url, host)` returns `None` until the first
build, and `health_check()` raises `TableNotSyncedError` until then.

```python
import asyncio
from scalehttp.routing.table import Table

async def main():
    table = Table()
    table.on_add(httpso)
    task = asyncio.create_task(table.start())
    await asyncio.sleep(0)
    print(table.route("http://example.com/api/users"))
    task.cancel()
```

## Queue counts

```python
from scalehttp.queue import Memory

queue = Memory()
queue.resize("example.com", 1)
queue.current().aggregate()   # 1
```

`Memory` supports `resize`, `ensure` and `remove`; `current()` returns a
`Counts` snapshot, which converts to and from JSON with `to_json` and
`Counts.from_json`. `FakeCounter` and `FakeCountReader` stand in for a
counter in tests.

`scalehttp.queue_rpc.counts_app(reader)` is a WSGI application that answers
with the reader's counts as JSON, or with status 500 if the reader raises.
`add_counts_route(routes, reader)` registers it under `/queue` (`COUNTS_PATH`)
in a mapping of paths to applications, and `get_counts(base_url)` fetches the
counts from `/queue` on a server, raising `ConnectionError` or `ValueError`
on failure.

`scalehttp.server.serve_until(address, app, stop)` serves a WSGI application
on `host:port` until the `threading.Event` `stop` is set, then raises
`ServerClosedError`.

## Endpoints

`scalehttp.endpoints.endpoints_for_service(namespace, service_name,
service_port, get_endpoints)` calls `get_endpoints(namespace, service_name)`
and returns an `http://ip:port` URL for every address. `FakeEndpointsCache`
keeps `Endpoints` in memory, gives out `FakeWatcher` streams from `watch`, and
summarises itself with `to_json`. `fake_endpoints_for_url` and
`fake_endpoints_for_urls` build `Endpoints` from URLs.

## Dialing with retries

```python
from scalehttp.net import Backoff, Dialer, dial_with_retry

dial = dial_with_retry(Dialer(timeout=0.5), Backoff(duration=0.01, factor=2, steps=5))
reader, writer = await dial("localhost:8080")
```

Durations are in seconds. Each call retries `steps` times from a fresh copy
of the backoff and raises the last error if every try fails.
`min_total_backoff_duration(backoff)` gives the least total wait, without
jitter.

## Other helpers

- `scalehttp.env` reads variables with `get`, `get_or`, `get_int_or` and
  `get_int32_or`, and parses them with `resolve_env_bool`,
  `resolve_env_int` and `resolve_env_duration`, which accepts durations such
  as `8s`, `30m` or `2h45m` and returns a `timedelta`.
- `scalehttp.util` holds `AtomicValue`, `Signaler` (a one-slot asyncio
  notification), `Stopwatch`, the `HealthChecker` base class, the async
  `with_timeout` and `is_ignored_error`.
- `scalehttp.context` binds a logger, a scaled object or an upstream URL to
  the current context with `bind_logger`, `bind_logger_name`, `bind_httpso`
  and `bind_stream`, read back with the `current_*` functions.

## What it does not do

This is a library only. It has no command-line program, and it does not talk
to a Kubernetes API server: there is no informer or client, so `Table` is fed
events by the caller and the only `EndpointsCache` is the in-memory
`FakeEndpointsCache`. `new_scaled_object` builds a ScaledObject manifest as a
dictionary but does not apply it anywhere. There is no proxy that forwards
requests to workloads and no scaler service.