"""Response bodies, Brotli compression and a reader over chunk streams."""

from __future__ import annotations

import inspect
from collections.abc import AsyncIterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

import brotli

from kurosabi.errors import ConnectionIOError
from kurosabi.header import Header

_MAX_QUALITY = 11
_USIZE_MAX = 2**64 - 1


class CompressionConfig(Enum):
    """How a response may be compressed."""

    NONE = "none"
    OPTIMAL = "optimal"
    MID = "mid"
    LOW = "low"
    HI = "hi"


class Compression(Enum):
    """The compression actually applied to a response."""

    NOT_COMPRESSED = "not_compressed"
    BR_OPTIMAL = "br_optimal"
    BR_MID = "br_mid"
    BR_LOW = "br_low"
    BR_HI = "br_hi"


_FIXED_LEVELS = {
    Compression.BR_MID: 5,
    Compression.BR_LOW: 1,
    Compression.BR_HI: 11,
}


def _buffer_level(encoding: Compression, size: int) -> int | None:
    """Quality for compressing a whole body in memory; None means leave it as is."""
    if encoding in _FIXED_LEVELS:
        return _FIXED_LEVELS[encoding]
    squared = max(min(size * size, _USIZE_MAX), 1)
    level = min(squared // 102_400_000, _MAX_QUALITY)
    return level or None


def _stream_level(encoding: Compression, size: int) -> int:
    """Quality for compressing straight onto the connection."""
    if encoding in _FIXED_LEVELS:
        return _FIXED_LEVELS[encoding]
    power = 1 if size <= 1 else 1 << (size - 1).bit_length()
    power = min(power, _USIZE_MAX)
    # The encoder accepts at most quality 11.
    return min(max(power // 89_600_000 + 1, _MAX_QUALITY), _MAX_QUALITY)


async def _read(source: Any, n: int) -> bytes:
    result = source.read(n)
    if inspect.isawaitable(result):
        result = await result
    return bytes(result)


@dataclass
class Body:
    """A response body: empty, text, bytes, or a readable stream."""

    kind: Literal["empty", "text", "binary", "stream"] = "empty"
    content: Any = None
    buffer_size: int = 0

    @classmethod
    def empty(cls) -> Body:
        return cls()

    @classmethod
    def text(cls, text: str) -> Body:
        return cls("text", text)

    @classmethod
    def binary(cls, data: bytes) -> Body:
        return cls("binary", bytes(data))

    @classmethod
    def stream(cls, source: Any, buffer_size: int) -> Body:
        """A body read from source.read(n) (sync or async) in pieces of buffer_size."""
        if buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        return cls("stream", source, buffer_size)

    def _bytes(self) -> bytes:
        if self.kind == "text":
            return self.content.encode("utf-8")
        if self.kind == "binary":
            return self.content
        return b""

    def size(self) -> int:
        """Length in bytes; 0 for empty and stream bodies, whose size is unknown."""
        return len(self._bytes())

    def compress(self, header: Header, encoding: Compression) -> None:
        """Brotli-compress a text or binary body in place and update the headers."""
        if encoding is Compression.NOT_COMPRESSED or self.kind not in ("text", "binary"):
            return
        level = _buffer_level(encoding, self.size())
        if level is None:
            return
        compressed = brotli.compress(self._bytes(), quality=level)
        header.set("Content-Encoding", "br")
        header.remove("Content-Length")
        header.set("Content-Length", str(len(compressed)))
        header.set("X-Compression", str(level))
        self.kind = "binary"
        self.content = compressed

    async def write_to(self, writer: Any, encoding: Compression = Compression.NOT_COMPRESSED) -> None:
        """Write the body to a writer with write() and async drain()."""
        try:
            if encoding is Compression.NOT_COMPRESSED:
                await self._write_plain(writer)
            else:
                await self._write_brotli(writer, _stream_level(encoding, self.size()))
        except OSError as exc:
            raise ConnectionIOError(exc) from exc

    async def _write_plain(self, writer: Any) -> None:
        if self.kind == "stream":
            while chunk := await _read(self.content, self.buffer_size):
                writer.write(chunk)
                await writer.drain()
        elif self.kind in ("text", "binary"):
            writer.write(self._bytes())

    async def _write_brotli(self, writer: Any, level: int) -> None:
        compressor = brotli.Compressor(quality=level)
        if self.kind == "stream":
            while chunk := await _read(self.content, self.buffer_size):
                out = compressor.process(chunk)
                if out:
                    writer.write(out)
        elif self.kind in ("text", "binary"):
            out = compressor.process(self._bytes())
            if out:
                writer.write(out)
        writer.write(compressor.finish())
        await writer.drain()


class ChunkReader:
    """Read arbitrary amounts from an async iterable of byte chunks."""

    def __init__(self, chunks: AsyncIterable[bytes]) -> None:
        self._chunks = chunks.__aiter__()
        self._pending = b""

    async def read(self, n: int = -1) -> bytes:
        """Return up to n bytes from the current chunk; b"" once the chunks run out."""
        while not self._pending:
            try:
                self._pending = bytes(await self._chunks.__anext__())
            except StopAsyncIteration:
                return b""
        if n < 0 or n >= len(self._pending):
            data, self._pending = self._pending, b""
        else:
            data, self._pending = self._pending[:n], self._pending[n:]
        return data