"""Incoming HTTP requests read from a client connection."""

from __future__ import annotations

import json
import re
from typing import Any

from kurosabi.errors import (
    ConnectionIOError,
    InternalServerError,
    InvalidHttpHeader,
    InvalidLength,
)
from kurosabi.header import Header
from kurosabi.method import Method
from kurosabi.path import Path

_PEEK_SIZE = 65536
_CONTENT_LENGTH = re.compile(r"\+?[0-9]+")


class Connection:
    """A client connection: an asyncio reader/writer pair with a small look-ahead buffer."""

    def __init__(self, reader: Any, writer: Any) -> None:
        self.reader = reader
        self.writer = writer
        self._pending = bytearray()

    async def peek(self) -> bytes:
        """Wait until at least one byte is available and return it without consuming it.

        Returns b"" when the peer has closed the connection.
        """
        if not self._pending:
            self._pending += await self.reader.read(_PEEK_SIZE)
        return bytes(self._pending[:1])

    async def readline(self) -> bytes:
        """Read one line including its newline; returns what is left at end of stream."""
        newline = self._pending.find(b"\n")
        if newline >= 0:
            line = bytes(self._pending[: newline + 1])
            del self._pending[: newline + 1]
            return line
        head = bytes(self._pending)
        self._pending.clear()
        return head + await self.reader.readline()

    async def readexactly(self, n: int) -> bytes:
        """Read exactly n bytes; raises asyncio.IncompleteReadError at end of stream."""
        head = bytes(self._pending[:n])
        del self._pending[:n]
        if len(head) == n:
            return head
        return head + await self.reader.readexactly(n - len(head))

    async def read(self, n: int = -1) -> bytes:
        """Read up to n bytes (all remaining bytes when n is negative)."""
        if self._pending:
            if n < 0 or n >= len(self._pending):
                data = bytes(self._pending)
                self._pending.clear()
                return data
            data = bytes(self._pending[:n])
            del self._pending[:n]
            return data
        return await self.reader.read(n)

    def write(self, data: bytes) -> None:
        """Queue bytes for sending."""
        self.writer.write(data)

    async def drain(self) -> None:
        """Wait until queued bytes have been handed to the transport."""
        await self.writer.drain()

    async def close(self) -> None:
        """Close the writing side of the connection."""
        self.writer.close()
        await self.writer.wait_closed()


class Request:
    """An HTTP request and the connection it arrived on."""

    def __init__(self, connection: Connection) -> None:
        self.method = Method("until parse")
        self.path = Path("")
        self.header = Header()
        self.version = ""
        self.connection = connection

    def __repr__(self) -> str:
        return f"Request({self.method} {self.path.path!r} {self.version})"

    async def wait_request(self) -> None:
        """Wait until the client sends something (or closes the connection)."""
        try:
            await self.connection.peek()
        except OSError as exc:
            raise ConnectionIOError(exc) from exc

    async def _read_line(self) -> str:
        try:
            raw = await self.connection.readline()
            return raw.decode("utf-8")
        except (OSError, ValueError) as exc:
            raise ConnectionIOError(exc) from exc

    async def parse_headers(self) -> None:
        """Read and parse the request line and header fields."""
        line = await self._read_line()
        parts = line.split()
        if len(parts) < 3:
            raise InvalidHttpHeader(line)
        method = Method.from_str(parts[0])
        path = Path(parts[1])
        version = parts[2]
        header = Header()

        while True:
            line = await self._read_line()
            trimmed = line.strip()
            if not trimmed:
                break
            key, sep, value = trimmed.partition(": ")
            if not sep:
                raise InvalidHttpHeader(line)
            header.set(key, value)

        self.method = method
        self.path = path
        self.header = header
        self.version = version

    async def body(self) -> bytes:
        """Read the body as bytes, as many as Content-Length says (none without it)."""
        raw_length = self.header.get("CONTENT-LENGTH")
        if raw_length is None:
            return b""
        if not _CONTENT_LENGTH.fullmatch(raw_length):
            raise InvalidLength(raw_length)
        try:
            return await self.connection.readexactly(int(raw_length))
        except (OSError, EOFError) as exc:
            raise InternalServerError(str(exc)) from exc

    async def body_string(self) -> str:
        """Read the body and decode it as UTF-8."""
        data = await self.body()
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InternalServerError(str(exc)) from exc

    async def body_json(self) -> Any:
        """Read the body and parse it as JSON."""
        text = await self.body_string()
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise InternalServerError(str(exc)) from exc

    async def body_form(self) -> list[tuple[str, str]]:
        """Read the body as '&'-separated key=value pairs; items without '=' are dropped."""
        text = await self.body_string()
        pairs = []
        for item in text.split("&"):
            key, sep, value = item.partition("=")
            if sep:
                pairs.append((key, value))
        return pairs

    def body_stream(self) -> Connection:
        """Return the connection for reading the body incrementally."""
        return self.connection