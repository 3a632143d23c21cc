"""The application object: route registration, JSON APIs and the request loop."""

from __future__ import annotations

import abc
import copy
import dataclasses
import inspect
import json
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Union

from kurosabi.errors import HttpError, KurosabiError, NotFound
from kurosabi.method import Method
from kurosabi.request import Request
from kurosabi.response import Response
from kurosabi.router import Router
from kurosabi.server import ServerBuilder, Worker

logger = logging.getLogger(__name__)

_DEFAULT_NOT_FOUND_TEXT = "404 Not Found (kurosabi router default err page)"


@dataclass
class DefaultContext:
    """The empty application context used when none is given."""


@dataclass
class Context:
    """What a handler works on: the request, the response being built and the app context."""

    req: Request
    res: Response
    c: Any


Handler = Callable[[Context], Union[Awaitable[Any], Any]]


class GetJsonApi(abc.ABC):
    """A GET endpoint whose return value is sent as JSON."""

    @abc.abstractmethod
    async def handler(self, c: Context) -> Any:
        """Produce the value to serialise as the JSON response."""


class PostJsonApi(abc.ABC):
    """A POST endpoint taking a JSON body and returning a value sent as JSON."""

    @abc.abstractmethod
    async def handler(self, c: Context, req_json: Any) -> Any:
        """Handle the decoded request body (None when it is missing or not JSON)."""


def _jsonable(value: Any) -> Any:
    """Turn a result into something json can encode; None when that fails."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return None
    return value


async def _invoke(handler: Handler, context: Context) -> Context:
    result = handler(context)
    if inspect.isawaitable(result):
        result = await result
    return result if isinstance(result, Context) else context


def _log_result(head_info: str, code: int) -> None:
    if 500 <= code <= 599:
        logger.error("%s- \x1b[31m%d\x1b[0m", head_info, code)
    elif 400 <= code <= 499:
        logger.warning("%s- \x1b[33m%d\x1b[0m", head_info, code)
    elif 300 <= code <= 399:
        logger.info("%s- \x1b[34m%d\x1b[0m", head_info, code)
    elif 200 <= code <= 299:
        logger.info("%s- \x1b[32m%d\x1b[0m", head_info, code)
    else:
        logger.info("%s- \x1b[36m%d\x1b[0m", head_info, code)


def should_close_connection(req: Request, res: Response) -> bool:
    """Whether the connection must be closed after this response."""
    if req.version == "HTTP/1.0":
        if (req.header.connection() or "close").lower() != "keep-alive":
            return True
    return (res.header.get("Connection") or "close").lower() == "close"


class Kurosabi:
    """An application: register routes, then call server() to get a server builder."""

    def __init__(self, context: Any = None, router: Router | None = None) -> None:
        self.context = DefaultContext() if context is None else context
        self.router = Router() if router is None else router

    def _register(self, method: Method, pattern: str, handler: Handler) -> None:
        self.router.register(method, pattern, handler)

    def get(self, pattern: str, handler: Handler) -> None:
        self._register(Method.GET, pattern, handler)

    def post(self, pattern: str, handler: Handler) -> None:
        self._register(Method.POST, pattern, handler)

    def put(self, pattern: str, handler: Handler) -> None:
        self._register(Method.PUT, pattern, handler)

    def delete(self, pattern: str, handler: Handler) -> None:
        self._register(Method.DELETE, pattern, handler)

    def patch(self, pattern: str, handler: Handler) -> None:
        self._register(Method.PATCH, pattern, handler)

    def options(self, pattern: str, handler: Handler) -> None:
        self._register(Method.OPTIONS, pattern, handler)

    def trace(self, pattern: str, handler: Handler) -> None:
        self._register(Method.TRACE, pattern, handler)

    def head(self, pattern: str, handler: Handler) -> None:
        self._register(Method.HEAD, pattern, handler)

    def connect(self, pattern: str, handler: Handler) -> None:
        self._register(Method.CONNECT, pattern, handler)

    def any(self, pattern: str, handler: Handler) -> None:
        """Register a handler for requests whose method token is 'OTHER'."""
        self._register(Method("OTHER"), pattern, handler)

    def not_found_handler(self, handler: Handler) -> None:
        self.router.register_not_found(handler)

    def get_json_api(self, pattern: str, api: GetJsonApi) -> None:
        """Serve api.handler's return value as JSON on GET requests."""

        async def handler(c: Context) -> Context:
            result = await api.handler(c)
            c.res.json_value(_jsonable(result))
            return c

        self._register(Method.GET, pattern, handler)

    def post_json_api(self, pattern: str, api: PostJsonApi) -> None:
        """Decode the POST body as JSON, call the api and send its result as JSON."""

        async def handler(c: Context) -> Context:
            try:
                req_json = await c.req.body_json()
            except HttpError:
                req_json = None
            result = await api.handler(c, req_json)
            c.res.json_value(_jsonable(result))
            return c

        self._register(Method.POST, pattern, handler)

    def server(self) -> ServerBuilder:
        """Seal the router and return a server builder around this app."""
        self.router.build()
        return ServerBuilder(DefaultWorker(self.router, self.context))


class DefaultWorker(Worker):
    """Serves HTTP/1.x requests on a connection until it should close."""

    def __init__(self, router: Router, context: Any) -> None:
        self.router = router
        self.context = context

    async def execute(self, connection: Any) -> None:
        req = Request(connection)
        while True:
            try:
                await req.wait_request()
            except KurosabiError as exc:
                logger.error("Failed to wait for request: %s", exc)
                break
            received = time.perf_counter()
            try:
                await req.parse_headers()
            except KurosabiError as exc:
                logger.error("Failed to parse headers: %s", exc)
                break
            started = time.perf_counter()
            head_info = f"{req.method} {req.path.path} {req.version} "

            handler = self.router.route(req)
            if handler is None:
                error = NotFound()
                res = Response.from_error(error)
                res.text(_DEFAULT_NOT_FOUND_TEXT)
                try:
                    await res.flush(req)
                except KurosabiError as exc:
                    logger.error("Failed to flush 404 response: %s", exc)
                logger.warning("%s- \x1b[33m%d\x1b[0m\n%s", head_info, res.code, error)
                continue

            context = Context(req, Response(), copy.copy(self.context))
            try:
                context = await _invoke(handler, context)
            except HttpError as exc:
                context.res = Response.from_error(exc)
            processing = time.perf_counter() - started

            code = context.res.code
            close = should_close_connection(context.req, context.res)
            try:
                await context.res.flush(context.req)
            except KurosabiError as exc:
                logger.error("Failed to flush response: %s", exc)
                break

            finished = time.perf_counter()
            logger.debug(
                "time: all_time=%.6fs send_time=%.6fs processing=%.6fs",
                finished - received,
                finished - started,
                processing,
            )
            _log_result(head_info, code)

            if close:
                logger.debug("Connection closed by server")
                break
            req = context.req