"""A demonstration application showing routes, JSON APIs, files and streaming."""

from __future__ import annotations

import argparse
import asyncio
import html
import ipaddress
import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime

from kurosabi.app import Context, GetJsonApi, Kurosabi
from kurosabi.body import ChunkReader
from kurosabi.errors import HttpError

logger = logging.getLogger(__name__)

DEMO_FILE = "nogera0.mp4"
DEMO_FILE_NAME = "no.mp4"
STREAM_ITERATIONS = 1000
STREAM_INTERVAL = 1.0
STREAM_BUFFER_SIZE = 8192

_SUBMIT_FORM = """
        <form action="/submit" method="post">
            <input type="text" name="data" placeholder="Enter some data" />
            <button type="submit">Submit</button>
        </form>
        """

_INDEX = """
        <h1>Welcome to Kurosabi!</h1>
        <p>Try the following routes:</p>
        <ul>
            <li><a href="/hello">/hello</a></li>
            <li><a href="/hello/kurosabi">/hello/kurosabi</a></li>
            <li><a href="/json">/json</a></li>
            <li><a href="/field/name/Kurosabi">/field/name/Kurosabi</a></li>
            <li><a href="/gurd/some/path">/gurd/some/path</a></li>
            <li><a href="/submit">/submit</a></li>
            <li><a href="/gurd/*">/gurd/*</a></li>
            <li><a href="/file">/file</a></li>
            <li><a href="/jsonapi">/jsonapi</a></li>
            <li><a href="/loopA">/loopA</a></li>
            <li><a href="/loopB">/loopB</a></li>
            <li><a href="/notfound">/notfound</a></li>
            <li><a href="/stream">/stream</a></li>
        </ul>
        """


@dataclass(frozen=True)
class MyContext:
    """Application data shared with every handler."""

    name: str


@dataclass
class ResJsonSchemaVersion:
    """The JSON body returned by the demo API."""

    name: str
    version: str


class MyApi(GetJsonApi):
    """Reports a name and version taken from the query string."""

    async def handler(self, c: Context) -> ResJsonSchemaVersion:
        name = c.req.path.get_query("name") or "Kurosabi"
        version = c.req.path.get_query("version") or "0.1"
        return ResJsonSchemaVersion(name=name, version=version)


def _debug_pairs(pairs: list[tuple[str, str]]) -> str:
    def quoted(text: str) -> str:
        return json.dumps(text, ensure_ascii=False)

    return "[" + ", ".join(f"({quoted(k)}, {quoted(v)})" for k, v in pairs) + "]"


async def _clock_chunks(
    count: int = STREAM_ITERATIONS, interval: float = STREAM_INTERVAL
) -> AsyncIterator[bytes]:
    """Yield one chunked-encoding frame with the current time per interval."""
    for n in range(1, count + 1):
        await asyncio.sleep(interval)
        data = f"current time (iteration {n}): {datetime.now().isoformat()}\n"
        encoded = data.encode("utf-8")
        logger.debug("Sending chunk: %s", data)
        yield f"{len(encoded):X}\r\n".encode("ascii") + encoded + b"\r\n"
    yield b"0\r\n\r\n"


async def _hello(c: Context) -> Context:
    c.res.text("Hello, World!")
    c.res.header.set_cookie("session_id", "123456")
    c.res.header.set("X-Custom-Header", "MyValue")
    return c


async def _file(c: Context) -> Context:
    await c.res.file(c.req, DEMO_FILE, True, DEMO_FILE_NAME)
    return c


async def _hello_name(c: Context) -> Context:
    name = c.req.path.get_field("name") or "World"
    c.res.text(f"Hello, {name}!")
    return c


async def _field(c: Context) -> Context:
    field = c.req.path.get_field("field") or "unknown"
    value = c.req.path.get_field("value") or "unknown"
    c.res.text(f"Field: {field}, Value: {value}")
    return c


async def _gurd(c: Context) -> Context:
    rest = c.req.path.get_field("*") or "unknown"
    c.res.text(f"Gurd: {rest}")
    return c


async def _json(c: Context) -> Context:
    c.res.json('{"name": "Kurosabi", "version": "0.1"}')
    return c


async def _submit_post(c: Context) -> Context:
    try:
        body = await c.req.body_form()
    except HttpError as exc:
        logger.error("Error receiving POST data: %s", exc)
        c.res.set_status(400)
        return c
    c.res.html(f"Received: {_debug_pairs(body)}")
    return c


async def _submit_form(c: Context) -> Context:
    c.res.html(_SUBMIT_FORM)
    return c


async def _loop_a(c: Context) -> Context:
    c.res.html('<a href="/loopB">loopA</a>')
    return c


async def _loop_b(c: Context) -> Context:
    c.res.html('<a href="/loopA">loopB</a>')
    return c


async def _stream(c: Context) -> Context:
    c.res.header.set("Transfer-Encoding", "chunked")
    c.res.stream(ChunkReader(_clock_chunks()), STREAM_BUFFER_SIZE)
    return c


async def _index(c: Context) -> Context:
    c.res.html(_INDEX)
    return c


async def _not_found(c: Context) -> Context:
    agent = html.escape(c.req.header.user_agent() or "unknown")
    page = (
        "<h1>404 Not Found</h1>\n"
        "            <p>The page you are looking for does not exist.</p>\n"
        f"            <p>debug: {agent}</p>"
    )
    c.res.html(page)
    c.res.set_status(404)
    return c


def build_app() -> Kurosabi:
    """Create the demo application with all of its routes registered."""
    app = Kurosabi(MyContext("Kurosabi"))
    app.get_json_api("/jsonapi", MyApi())
    app.get("/hello", _hello)
    app.get("/file", _file)
    app.get("/hello/:name", _hello_name)
    app.get("/field/:field/:value", _field)
    app.get("/gurd/*", _gurd)
    app.get("/json", _json)
    app.post("/submit", _submit_post)
    app.get("/submit", _submit_form)
    app.get("/loopA", _loop_a)
    app.get("/loopB", _loop_b)
    app.get("/stream", _stream)
    app.get("/", _index)
    app.not_found_handler(_not_found)
    return app


def _ipv4(text: str) -> tuple[int, int, int, int]:
    try:
        packed = ipaddress.IPv4Address(text).packed
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid IPv4 address: {text}") from exc
    return tuple(packed)  # type: ignore[return-value]


def main(argv: list[str] | None = None) -> None:
    """Run the demo server."""
    parser = argparse.ArgumentParser(prog="kurosabi-demo", description=__doc__)
    parser.add_argument("--host", type=_ipv4, default=(0, 0, 0, 0))
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--threads", type=int, default=8)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG)

    server = (
        build_app()
        .server()
        .host(args.host)
        .port(args.port)
        .thread(args.threads)
        .thread_name("kurosabi-worker")
        .queue_size(128)
        .nodelay(False)
        .build()
    )
    server.run()


if __name__ == "__main__":
    main()