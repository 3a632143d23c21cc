import asyncio
import contextlib
from datetime import timedelta

import pytest

from kurosabi.server import (
    Server,
    ServerBuilder,
    ServerConfig,
    Worker,
    WorkerPool,
)


class _DummyConnection:
    def __init__(self, name):
        self.name = name
        self.closed = False

    async def close(self):
        self.closed = True


class _RecordingWorker(Worker):
    def __init__(self, fail_on=None):
        self.seen = []
        self.fail_on = fail_on

    async def execute(self, connection):
        self.seen.append(connection.name)
        if connection.name == self.fail_on:
            raise RuntimeError("boom")


class _EchoWorker(Worker):
    async def execute(self, connection):
        line = await connection.readline()
        connection.write(b"echo:" + line)
        await connection.drain()


async def _wait_until(predicate, attempts=200):
    for _ in range(attempts):
        if predicate():
            return True
        await asyncio.sleep(0.01)
    return predicate()


def test_config_defaults_follow_source():
    cfg = ServerConfig()
    assert cfg.host == (127, 0, 0, 1)
    assert cfg.port == 8080
    assert cfg.thread == 4
    assert cfg.thread_name == "kurosabi-worker"
    assert cfg.queue_size == 128
    assert cfg.backlog == 1024
    assert cfg.send_buffer_size == 64 * 1024
    assert cfg.recv_buffer_size == 64 * 1024
    assert cfg.keepalive_time == timedelta(seconds=30)
    assert cfg.keepalive_interval == timedelta(seconds=10)
    assert cfg.accept_threads is None
    assert cfg.reuse_address and cfg.nodelay and cfg.keepalive_enabled


def test_accept_threads_default_is_half_of_workers():
    assert ServerConfig(thread=8).effective_accept_threads == 4
    assert ServerConfig(thread=1).effective_accept_threads == 0
    assert ServerConfig(thread=8, accept_threads=3).effective_accept_threads == 3


def test_builder_chain_sets_values():
    builder = ServerBuilder(_RecordingWorker())
    result = (
        builder.host([0, 0, 0, 0])
        .port(9000)
        .thread(8)
        .thread_name("worker")
        .queue_size(16)
        .nodelay(False)
        .reuse_address(False)
        .backlog(10)
        .send_buffer_size(4096)
        .recv_buffer_size(8192)
        .keepalive_enabled(False)
        .keepalive_time(5)
        .keepalive_interval(timedelta(seconds=2))
        .accept_threads(2)
    )
    assert result is builder
    cfg = builder.config
    assert cfg.host == (0, 0, 0, 0)
    assert cfg.port == 9000
    assert cfg.thread == 8
    assert cfg.thread_name == "worker"
    assert cfg.queue_size == 16
    assert cfg.nodelay is False
    assert cfg.reuse_address is False
    assert cfg.backlog == 10
    assert cfg.send_buffer_size == 4096
    assert cfg.recv_buffer_size == 8192
    assert cfg.keepalive_enabled is False
    assert cfg.keepalive_time == timedelta(seconds=5)
    assert cfg.keepalive_interval == timedelta(seconds=2)
    assert cfg.accept_threads == 2


def test_build_carries_config_and_worker():
    worker = _RecordingWorker()
    server = ServerBuilder(worker).port(1234).build()
    assert isinstance(server, Server)
    assert server.config.port == 1234
    assert server.worker is worker
    assert server.address is None


@pytest.mark.parametrize("host", [(1, 2, 3), (256, 0, 0, 1), (1, 2, 3, 4, 5), (-1, 0, 0, 0)])
def test_invalid_host_rejected(host):
    with pytest.raises(ValueError):
        ServerBuilder(_RecordingWorker()).host(host)


def test_invalid_port_rejected():
    with pytest.raises(ValueError):
        ServerBuilder(_RecordingWorker()).port(70000)


def test_worker_is_abstract():
    with pytest.raises(TypeError):
        Worker()


@pytest.mark.asyncio
async def test_assign_connection_rejects_when_queue_full():
    pool = WorkerPool(2, _RecordingWorker())
    results = [await pool.assign_connection(_DummyConnection(n)) for n in "abc"]
    assert results == [True, True, False]


@pytest.mark.asyncio
async def test_main_loop_serves_and_closes_connections_in_order():
    worker = _RecordingWorker()
    pool = WorkerPool(4, worker)
    task = asyncio.create_task(pool.main_loop())
    try:
        conns = [_DummyConnection("first"), _DummyConnection("second")]
        for conn in conns:
            assert await pool.assign_connection(conn)
        assert await _wait_until(lambda: all(c.closed for c in conns))
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
    assert worker.seen == ["first", "second"]


@pytest.mark.asyncio
async def test_main_loop_survives_failing_worker():
    worker = _RecordingWorker(fail_on="bad")
    pool = WorkerPool(4, worker)
    task = asyncio.create_task(pool.main_loop())
    try:
        bad, good = _DummyConnection("bad"), _DummyConnection("good")
        await pool.assign_connection(bad)
        await pool.assign_connection(good)
        assert await _wait_until(lambda: good.closed)
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
    assert worker.seen == ["bad", "good"]
    assert bad.closed


@pytest.mark.asyncio
async def test_server_serves_tcp_connections():
    server = ServerBuilder(_EchoWorker()).host((127, 0, 0, 1)).port(0).thread(2).build()
    task = asyncio.create_task(server.serve())
    try:
        assert await _wait_until(lambda: server.address is not None)
        reader, writer = await asyncio.open_connection(*server.address)
        writer.write(b"hello\n")
        await writer.drain()
        data = await asyncio.wait_for(reader.read(), 5)
        writer.close()
        assert data == b"echo:hello\n"
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
    assert server.address is None


@pytest.mark.asyncio
async def test_server_without_accept_threads_does_not_listen():
    server = ServerBuilder(_EchoWorker()).port(0).thread(1).build()
    task = asyncio.create_task(server.serve())
    try:
        await asyncio.sleep(0.05)
        assert server.address is None
        assert not task.done()
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task