import asyncio

import pytest

from scalehttp.objects import HTTPScaledObject
from scalehttp.routing.table import Table, TableNotSyncedError

NAMESPACE = "default"


def make_list():
    return [
        HTTPScaledObject(namespace=NAMESPACE, name="keda-sh", hosts=["keda.sh"]),
        HTTPScaledObject(
            namespace=NAMESPACE,
            name="kubernetes-io",
            hosts=["kubernetes.io"],
            target_pending_requests=1,
        ),
        HTTPScaledObject(
            namespace=NAMESPACE, name="github-com", hosts=["github.com"], min_replicas=3
        ),
    ]


async def eventually(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


async def stop(task):
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


def test_not_synced_before_start():
    table = Table()
    table.on_add(make_list()[0])
    assert table.has_synced() is False
    assert table.route("http://keda.sh/") is None
    with pytest.raises(TableNotSyncedError):
        table.health_check()


@pytest.mark.asyncio
async def test_refreshes_memory_on_first_iteration():
    table = Table()
    httpsos = make_list()
    for httpso in httpsos:
        table.on_add(httpso)
    task = asyncio.create_task(table.start())
    await eventually(table.has_synced)
    for httpso in httpsos:
        assert table.route(f"http://{httpso.hosts[0]}/") == httpso
    table.health_check()
    assert table.has_synced() is True
    await stop(task)


@pytest.mark.asyncio
async def test_refreshes_memory_after_signal():
    table = Table()
    httpsos = make_list()
    for httpso in httpsos:
        table.on_add(httpso)
    task = asyncio.create_task(table.start())
    await eventually(table.has_synced)

    azure = HTTPScaledObject(
        namespace=NAMESPACE, name="azure-com", hosts=["azure.com"], min_replicas=3
    )
    table.on_add(azure)
    table.on_delete(httpsos[0])

    await eventually(lambda: table.route("http://azure.com/") is not None)
    for httpso in httpsos[1:] + [azure]:
        assert table.route(f"http://{httpso.hosts[0]}/") == httpso
    assert table.route("http://keda.sh/") is None
    await stop(task)


@pytest.mark.asyncio
async def test_update_with_new_name_removes_old():
    table = Table()
    old = HTTPScaledObject(namespace=NAMESPACE, name="old", hosts=["keda.sh"])
    new = HTTPScaledObject(namespace=NAMESPACE, name="new", hosts=["new.example.com"])
    table.on_add(old)
    table.on_update(old, new)
    task = asyncio.create_task(table.start())
    await eventually(table.has_synced)
    assert table.route("http://new.example.com/") == new
    assert table.route("http://keda.sh/") is None
    await stop(task)


@pytest.mark.asyncio
async def test_ignores_foreign_objects():
    table = Table()
    table.on_add("not an object")
    table.on_update("a", "b")
    table.on_delete(42)
    task = asyncio.create_task(table.start())
    await eventually(table.has_synced)
    assert table.route("http://keda.sh/") is None
    await stop(task)


@pytest.mark.asyncio
async def test_route_uses_host_override():
    table = Table()
    httpso = make_list()[0]
    table.on_add(httpso)
    task = asyncio.create_task(table.start())
    await eventually(table.has_synced)
    assert table.route("http://internal/", "keda.sh:8080") == httpso
    assert table.route(None) is None
    await stop(task)


@pytest.mark.asyncio
async def test_start_twice_is_rejected():
    table = Table()
    task = asyncio.create_task(table.start())
    await eventually(table.has_synced)
    with pytest.raises(RuntimeError, match="more than once"):
        await table.start()
    await stop(task)


@pytest.mark.asyncio
async def test_cancel_before_sync():
    table = Table(handler_synced=lambda: False)
    table.on_add(make_list()[0])
    task = asyncio.create_task(table.start())
    await asyncio.sleep(0.05)
    assert table.has_synced() is False
    with pytest.raises(TableNotSyncedError):
        table.health_check()
    await stop(task)
    assert task.cancelled() is True