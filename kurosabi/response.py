"""HTTP responses: status, headers and body, and writing them to a client."""

from __future__ import annotations

import json
import mimetypes
import os
import re
from pathlib import Path as FsPath
from typing import Any, BinaryIO

from kurosabi.body import Body, Compression, CompressionConfig
from kurosabi.errors import (
    BadRequest,
    ConnectionIOError,
    HttpError,
    InternalServerError,
    NotFound,
    RangeNotSatisfiable,
)
from kurosabi.header import Header

DEFAULT_BUFFER_SIZE = 16384

_UNSIGNED = re.compile(r"\+?[0-9]+")

_BROTLI_BY_CONFIG = {
    CompressionConfig.OPTIMAL: Compression.BR_OPTIMAL,
    CompressionConfig.MID: Compression.BR_MID,
    CompressionConfig.LOW: Compression.BR_LOW,
    CompressionConfig.HI: Compression.BR_HI,
}


def _parse_unsigned(text: str) -> int:
    if not _UNSIGNED.fullmatch(text):
        raise BadRequest("Invalid Range")
    return int(text)


def _parse_range(raw: str, size: int) -> tuple[int, int]:
    """Resolve 'bytes=START-END', 'bytes=START-' or 'bytes=-SUFFIX' against a size."""
    if not raw.startswith("bytes="):
        raise BadRequest("Invalid Range")
    first, sep, last = raw[len("bytes="):].partition("-")
    if not sep:
        raise BadRequest("Invalid Range")
    start, end = 0, size - 1
    if first:
        start = _parse_unsigned(first)
    if last:
        end = _parse_unsigned(last)
    if first and not last:
        end = size - 1
    if last and not first:
        start = max(size - _parse_unsigned(last), 0)
        end = size - 1
    if start > end or end >= size:
        raise RangeNotSatisfiable()
    return start, end


class _FileSlice:
    """A reader over an open file that stops after a byte limit and closes itself."""

    def __init__(self, handle: BinaryIO, limit: int | None = None) -> None:
        self._handle = handle
        self._remaining = limit

    def read(self, n: int) -> bytes:
        if self._handle.closed:
            return b""
        if self._remaining is not None:
            n = min(n, self._remaining)
        data = self._handle.read(n) if n > 0 else b""
        if not data:
            self._handle.close()
            return b""
        if self._remaining is not None:
            self._remaining -= len(data)
        return data


class Response:
    """An HTTP response being built by a handler."""

    def __init__(self) -> None:
        self.code = 200
        self.header = Header()
        self.body = Body.empty()
        self.compress_enabled = True
        self.compress_config = CompressionConfig.OPTIMAL

    def __repr__(self) -> str:
        return f"Response({self.code}, {self.body.kind})"

    @classmethod
    def from_error(cls, error: HttpError) -> Response:
        """Build the plain-text error response for an HttpError."""
        res = cls()
        res.set_status(error.status())
        res.text(error.body_text())
        return res

    def set_status(self, code: int) -> None:
        self.code = code

    def _text_body(self, text: str, content_type: str) -> Response:
        self.header.set("Content-Type", content_type)
        self.header.set("Content-Length", str(len(text.encode("utf-8"))))
        self.body = Body.text(text)
        return self

    def text(self, text: str) -> Response:
        return self._text_body(text, "text/plain")

    def html(self, text: str) -> Response:
        return self._text_body(text, "text/html")

    def xml(self, text: str) -> Response:
        return self._text_body(text, "application/xml")

    def js(self, text: str) -> Response:
        return self._text_body(text, "application/javascript")

    def css(self, text: str) -> Response:
        return self._text_body(text, "text/css")

    def csv(self, text: str) -> Response:
        return self._text_body(text, "text/csv")

    def json(self, text: str) -> Response:
        """Send text that already holds JSON."""
        return self._text_body(text, "application/json")

    def json_value(self, value: Any) -> Response:
        """Serialise a value compactly as JSON and send it."""
        text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        return self._text_body(text, "application/json")

    def binary(self, data: bytes) -> Response:
        return self.data(data, "application/octet-stream")

    def data(self, data: bytes, content_type: str) -> Response:
        self.header.set("Content-Type", content_type)
        self.header.set("Content-Length", str(len(data)))
        self.body = Body.binary(data)
        return self

    def stream(self, source: Any, buffer_size: int) -> Response:
        """Send whatever source.read(n) yields; no headers are added."""
        self.body = Body.stream(source, buffer_size)
        return self

    async def file(
        self,
        req: Any,
        path: str | os.PathLike[str],
        inline: bool,
        file_name: str | None = None,
    ) -> None:
        """Stream a file, honouring a Range header of the request."""
        fs_path = FsPath(path)
        try:
            handle = open(fs_path, "rb")
        except OSError as exc:
            raise NotFound() from exc
        try:
            try:
                size = os.fstat(handle.fileno()).st_size
            except OSError as exc:
                raise InternalServerError("metadata failed") from exc

            mime, _ = mimetypes.guess_type(fs_path.name)
            self.header.set("Content-Type", mime or "application/octet-stream")

            name = file_name if file_name is not None else (fs_path.name or None)
            if name is not None:
                disposition = "inline" if inline else "attachment"
                self.header.set("Content-Disposition", f'{disposition}; filename="{name}"')

            range_raw = req.header.get("Range")
            if range_raw is not None:
                start, end = _parse_range(range_raw, size)
                length = end - start + 1
                try:
                    handle.seek(start)
                except OSError as exc:
                    raise InternalServerError("seek failed") from exc
                self.body = Body.stream(_FileSlice(handle, length), DEFAULT_BUFFER_SIZE)
                self.code = 206
                self.header.set("Content-Length", str(length))
                self.header.set("Content-Range", f"bytes {start}-{end}/{size}")
            else:
                self.body = Body.stream(_FileSlice(handle), DEFAULT_BUFFER_SIZE)
                self.header.set("Content-Length", str(size))
        except BaseException:
            handle.close()
            raise

        self.header.set("Accept-Ranges", "bytes")

    def decide_compression(self, req: Any) -> Compression:
        """Choose Brotli when enabled, configured and accepted by the client."""
        if not self.compress_enabled:
            return Compression.NOT_COMPRESSED
        encodings = req.header.accept_encodings()
        if encodings is not None:
            if self.compress_config is CompressionConfig.NONE:
                return Compression.NOT_COMPRESSED
            if "br" in encodings:
                return _BROTLI_BY_CONFIG[self.compress_config]
        return Compression.NOT_COMPRESSED

    async def flush(self, req: Any) -> None:
        """Write the status line, headers and body to the request's connection."""
        self.header.set("Server", "Kurosabi")
        compression = self.decide_compression(req)
        self.body.compress(self.header, compression)
        connection = req.connection
        lines = [f"HTTP/1.1 {self.code}\r\n"]
        lines.extend(f"{key}: {value}\r\n" for key, value in self.header.items())
        lines.append("\r\n")
        try:
            connection.write("".join(lines).encode("utf-8"))
            await connection.drain()
            await self.body.write_to(connection, Compression.NOT_COMPRESSED)
            await connection.drain()
        except OSError as exc:
            raise ConnectionIOError(exc) from exc