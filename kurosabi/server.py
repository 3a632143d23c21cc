"""The TCP server: listening socket setup, a bounded connection queue and worker loops."""

from __future__ import annotations

import abc
import asyncio
import contextlib
import logging
import socket
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import Any

from kurosabi.request import Connection

logger = logging.getLogger(__name__)


def _as_timedelta(value: timedelta | float) -> timedelta:
    if isinstance(value, timedelta):
        return value
    return timedelta(seconds=value)


@dataclass(frozen=True)
class ServerConfig:
    """Settings for a server: address, worker count, queue and socket options."""

    host: tuple[int, int, int, int] = (127, 0, 0, 1)
    port: int = 8080
    thread: int = 4
    thread_name: str = "kurosabi-worker"
    queue_size: int = 128
    reuse_address: bool = True
    nodelay: bool = True
    backlog: int = 1024
    send_buffer_size: int = 64 * 1024
    recv_buffer_size: int = 64 * 1024
    keepalive_enabled: bool = True
    keepalive_time: timedelta = field(default_factory=lambda: timedelta(seconds=30))
    keepalive_interval: timedelta = field(default_factory=lambda: timedelta(seconds=10))
    accept_threads: int | None = None

    @property
    def host_str(self) -> str:
        return ".".join(str(part) for part in self.host)

    @property
    def effective_accept_threads(self) -> int:
        """Listener count: the configured value, or half the worker count."""
        if self.accept_threads is not None:
            return self.accept_threads
        return self.thread // 2


class Worker(abc.ABC):
    """Handles one client connection from start to finish."""

    @abc.abstractmethod
    async def execute(self, connection: Any) -> None:
        """Serve every request that arrives on the connection."""


class WorkerPool:
    """A bounded queue of accepted connections drained by worker loops."""

    def __init__(self, queue_size: int, worker: Worker) -> None:
        if queue_size <= 0:
            raise ValueError("queue_size must be positive")
        self.worker = worker
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=queue_size)

    async def assign_connection(self, connection: Any) -> bool:
        """Queue a connection; returns False when the queue is full."""
        try:
            self._queue.put_nowait(connection)
        except asyncio.QueueFull:
            logger.error("Failed to assign connection to worker - queue is full")
            return False
        return True

    async def main_loop(self) -> None:
        """Take connections from the queue and serve them, one at a time, forever."""
        while True:
            connection = await self._queue.get()
            logger.debug("Created new connection")
            try:
                await self.worker.execute(connection)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Worker failed while serving a connection")
            finally:
                with contextlib.suppress(Exception):
                    await connection.close()
                self._queue.task_done()


class ServerBuilder:
    """Fluent configuration of a server around a worker."""

    def __init__(self, worker: Worker) -> None:
        self.worker = worker
        self.config = ServerConfig()

    def _update(self, **changes: Any) -> ServerBuilder:
        self.config = replace(self.config, **changes)
        return self

    def host(self, host: Sequence[int]) -> ServerBuilder:
        """Set the IPv4 address to bind, as four octets."""
        octets = tuple(host)
        if len(octets) != 4 or not all(
            isinstance(o, int) and 0 <= o <= 255 for o in octets
        ):
            raise ValueError(f"invalid IPv4 address: {host!r}")
        return self._update(host=octets)

    def port(self, port: int) -> ServerBuilder:
        if not 0 <= port <= 65535:
            raise ValueError(f"invalid port: {port}")
        return self._update(port=port)

    def thread(self, thread: int) -> ServerBuilder:
        """Set the number of worker loops."""
        if thread < 0:
            raise ValueError("thread must not be negative")
        return self._update(thread=thread)

    def thread_name(self, thread_name: str) -> ServerBuilder:
        return self._update(thread_name=thread_name)

    def queue_size(self, queue_size: int) -> ServerBuilder:
        if queue_size <= 0:
            raise ValueError("queue_size must be positive")
        return self._update(queue_size=queue_size)

    def reuse_address(self, val: bool) -> ServerBuilder:
        return self._update(reuse_address=val)

    def nodelay(self, val: bool) -> ServerBuilder:
        return self._update(nodelay=val)

    def backlog(self, val: int) -> ServerBuilder:
        return self._update(backlog=val)

    def send_buffer_size(self, val: int) -> ServerBuilder:
        return self._update(send_buffer_size=val)

    def recv_buffer_size(self, val: int) -> ServerBuilder:
        return self._update(recv_buffer_size=val)

    def keepalive_enabled(self, val: bool) -> ServerBuilder:
        return self._update(keepalive_enabled=val)

    def keepalive_time(self, val: timedelta | float) -> ServerBuilder:
        """Set the idle time before the first keep-alive probe (timedelta or seconds)."""
        return self._update(keepalive_time=_as_timedelta(val))

    def keepalive_interval(self, val: timedelta | float) -> ServerBuilder:
        """Set the time between keep-alive probes (timedelta or seconds)."""
        return self._update(keepalive_interval=_as_timedelta(val))

    def accept_threads(self, count: int) -> ServerBuilder:
        """Set the listener count; by default half the worker count."""
        if count < 0:
            raise ValueError("accept_threads must not be negative")
        return self._update(accept_threads=count)

    def build(self) -> Server:
        return Server(self.config, self.worker)


class Server:
    """Accepts TCP connections and hands them to a pool of worker loops."""

    def __init__(self, config: ServerConfig, worker: Worker) -> None:
        self.config = config
        self.worker = worker
        self.address: tuple[str, int] | None = None
        self.pool: WorkerPool | None = None

    def _create_listener(self) -> socket.socket:
        cfg = self.config
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, int(cfg.reuse_address))
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, int(cfg.nodelay))
            sock.bind((cfg.host_str, cfg.port))
            sock.listen(cfg.backlog)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_SNDBUF, cfg.send_buffer_size)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, cfg.recv_buffer_size)
            if cfg.keepalive_enabled:
                self._configure_keepalive(sock)
            sock.setblocking(False)
        except BaseException:
            sock.close()
            raise
        return sock

    def _configure_keepalive(self, sock: socket.socket) -> None:
        cfg = self.config
        idle = max(int(cfg.keepalive_time.total_seconds()), 1)
        interval = max(int(cfg.keepalive_interval.total_seconds()), 1)
        idle_option = getattr(socket, "TCP_KEEPIDLE", None)
        if idle_option is None:
            idle_option = getattr(socket, "TCP_KEEPALIVE", None)
        if idle_option is not None:
            sock.setsockopt(socket.IPPROTO_TCP, idle_option, idle)
        interval_option = getattr(socket, "TCP_KEEPINTVL", None)
        if interval_option is not None:
            sock.setsockopt(socket.IPPROTO_TCP, interval_option, interval)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)

    async def _on_client(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        client = writer.get_extra_info("socket")
        if client is not None:
            with contextlib.suppress(OSError):
                client.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        connection = Connection(reader, writer)
        assert self.pool is not None
        if not await self.pool.assign_connection(connection):
            with contextlib.suppress(Exception):
                await connection.close()

    async def serve(self) -> None:
        """Start the worker loops and the listener, then serve until cancelled."""
        cfg = self.config
        self.pool = WorkerPool(cfg.queue_size, self.worker)
        loops = []
        for i in range(cfg.thread):
            loops.append(
                asyncio.create_task(self.pool.main_loop(), name=f"{cfg.thread_name}.{i}")
            )
            logger.info("%s.%d running !", cfg.thread_name, i)

        listener = None
        try:
            if cfg.effective_accept_threads > 0:
                sock = self._create_listener()
                listener = await asyncio.start_server(
                    self._on_client, sock=sock, backlog=cfg.backlog
                )
                self.address = sock.getsockname()[:2]
            logger.info("Server starting on http://%s:%d", cfg.host_str, cfg.port)
            await asyncio.Event().wait()
        finally:
            if listener is not None:
                listener.close()
            for task in loops:
                task.cancel()
            await asyncio.gather(*loops, return_exceptions=True)
            self.address = None

    def run(self) -> None:
        """Serve in a new event loop until interrupted."""
        try:
            asyncio.run(self.serve())
        except KeyboardInterrupt:
            logger.info("Server stopped")