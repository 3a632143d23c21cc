# kurosabi

A small asynchronous HTTP/1.1 server framework built on `asyncio`.

- radix-tree router (`kurosabi.router.Router`) with static segments,
  `:param` captures and a trailing `*` wildcard
- persistent connections served by a pool of worker loops
- text, HTML, XML, JS, CSS, CSV, JSON, binary, streamed and file responses
- `Range` requests for files (`bytes=start-end`, `start-`, `-suffix`)
- Brotli compression chosen from the client's `Accept-Encoding`
- helpers for JSON endpoints (`GetJsonApi`, `PostJsonApi`)

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Quick start

A handler receives a `kurosabi.app.Context` and returns it. It may be a
coroutine function or a plain function; if it returns something other than a
`Context`, the context it was given is used. The context carries the request
(`c.req`), the response being built (`c.res`) and a shallow copy of the
application's context value (`c.c`), made for each request.

```python
from kurosabi.app import Kurosabi

app = Kurosabi()


async def hello(c):
    c.res.text("Hello, World!")
    c.res.header.set_cookie("session_id", "placeholder")
    return c


async def hello_name(c):
    name = c.req.path.get_field("name") or "World"
    c.res.text(f"Hello, {name}!")
    return c


async def rest(c):
    c.res.text(f"Rest: {c.req.path.get_field('*')}")
    return c


async def not_found(c):
    c.res.html("<h1>404 Not Found</h1>")
    c.res.set_status(404)
    return c


app.get("/hello", hello)
app.get("/hello/:name", hello_name)
app.get("/files/*", rest)
app.not_found_handler(not_found)

server = app.server().port(8080).build()
server.run()
```

`Kurosabi(context=None, router=None)` takes an optional context value and
router. Routes are added with `get`, `post`, `put`, `delete`, `patch`,
`options`, `trace`, `head` and `connect`; `any` registers a route for requests
whose method token is literally `OTHER`. Registering the same route twice
raises `ValueError`; registering after `server()` raises `RuntimeError`.

A path that matches nothing goes to the handler set by `not_found_handler`;
without one the server answers `404` with a plain-text page. An `HttpError`
raised by a handler is turned into its error response.

## Server

`app.server()` seals the router and returns a `kurosabi.server.ServerBuilder`.
Its methods return the builder, so settings can be chained before `build()`:

| method | default |
| --- | --- |
| `host(octets)` | `(127, 0, 0, 1)` |
| `port(port)` | `8080` |
| `thread(n)` – number of worker loops | `4` |
| `thread_name(name)` | `"kurosabi-worker"` |
| `queue_size(n)` – pending connections | `128` |
| `reuse_address(val)` | `True` |
| `nodelay(val)` | `True` |
| `backlog(n)` | `1024` |
| `send_buffer_size(n)`, `recv_buffer_size(n)` | `65536` |
| `keepalive_enabled(val)` | `True` |
| `keepalive_time(val)`, `keepalive_interval(val)` | 30 s, 10 s |
| `accept_threads(n)` | half of `thread` |

`keepalive_time` and `keepalive_interval` take a `timedelta` or seconds.
A listening socket is opened only when `accept_threads` (or its default,
`thread // 2`) is greater than zero, so `thread(1)` alone opens none; set
`accept_threads(1)` in that case.

`Server.run()` serves in a new event loop until interrupted;
`await Server.serve()` does the same inside a running loop, and sets
`Server.address` to the bound address while serving. Worker loops are
`asyncio` tasks in one thread. When the connection queue is full, a new
connection is closed at once.

A connection is kept open after a response only when the response sets
`Connection: keep-alive` (and, for HTTP/1.0 requests, the request asked for
keep-alive too); otherwise it is closed.

## Requests

- `c.req.method` (a `kurosabi.method.Method`), `c.req.version`, `c.req.header`
- `c.req.path.get_query(key)` – a query-string value
- `c.req.path.get_field(key)` – a value captured by the router
- `c.req.path.path_only()` – the path's segments without empty parts
- `await c.req.body()`, `body_string()`, `body_json()`, `body_form()`

The body is read according to `Content-Length`; without that header it is
empty. Header lookups are case-insensitive: `c.req.header.get("content-type")`,
`c.req.header.user_agent()`, `c.req.header.get_cookie("session_id")`,
`c.req.header.accept_encodings()`.

## Responses

`c.res.text`, `html`, `xml`, `js`, `css`, `csv`, `json` (a string that holds
JSON), `json_value` (any JSON-serialisable value), `binary` and `data` set the
body together with `Content-Type` and `Content-Length`. `stream(source,
buffer_size)` sends what `source.read(n)` returns (sync or async) and adds no
headers; `kurosabi.body.ChunkReader` wraps an async iterable of byte chunks for
this.

`await c.res.file(c.req, path, inline, file_name)` streams a file with a type
guessed from its name and a `Content-Disposition` header. A `Range` header
gives `206 Partial Content`; a malformed one raises `BadRequest`, an
unsatisfiable one `RangeNotSatisfiable`, a missing file `NotFound`.

When `compress_enabled` is true and the client accepts `br`, text and binary
bodies are Brotli-compressed according to `compress_config`
(`kurosabi.body.CompressionConfig`). With the default `OPTIMAL` setting the
quality grows with body size and bodies of about 10 KB or less are sent
uncompressed. Streamed bodies are never compressed.

Errors from `kurosabi.errors` (`NotFound`, `BadRequest`, `MethodNotAllowed`,
`InternalServerError`, `RangeNotSatisfiable`, `InvalidLength`,
`CustomHttpError`) become a plain-text reply with `Response.from_error(error)`.

## JSON endpoints

Subclass `GetJsonApi` (`async def handler(self, c)`) or `PostJsonApi`
(`async def handler(self, c, req_json)`) and register them with
`app.get_json_api(pattern, api)` or `app.post_json_api(pattern, api)`. The
returned value (a dataclass is converted to a dict) is sent as JSON; a value
that cannot be encoded is sent as `null`. For POST, `req_json` is `None` when
the body is missing or is not valid JSON.

## Demo

A demo application (text, JSON, a form, a JSON API, a file, a chunked clock
stream and a custom 404 page) is included:

```
kurosabi-demo
kurosabi-demo --host 127.0.0.1 --port 8000 --threads 4
```

By default it listens on port 8080 on all interfaces with 8 worker loops and
logs at debug level. Its `/file` route serves `nogera0.mp4` from the current
directory and answers 404 when that file is absent. `kurosabi.demo.build_app()`
returns the demo application without starting a server.

## Limitations

The server speaks plain HTTP/1.x only: there is no TLS and no HTTP/2.
Request bodies are read only by `Content-Length` (chunked request bodies are
not decoded), and the status line carries the status code without a reason
phrase.