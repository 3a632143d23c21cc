"""Exceptions raised by the server and by request handlers."""

from __future__ import annotations


class KurosabiError(Exception):
    """A failure while reading from or writing to a connection."""


class InvalidHttpHeader(KurosabiError):
    """The request line or a header line could not be parsed."""

    def __init__(self, header: str) -> None:
        super().__init__(header)
        self.header = header

    def __str__(self) -> str:
        return f"Invalid http header: {self.header}"


class InvalidHttpRangeHeader(KurosabiError):
    """A Range header could not be parsed."""

    def __init__(self, header: str) -> None:
        super().__init__(header)
        self.header = header

    def __str__(self) -> str:
        return f"Invalid http range header: {self.header}"


class ConnectionIOError(KurosabiError):
    """An I/O error on the underlying connection."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(error)
        self.error = error

    def __str__(self) -> str:
        return f"IO error: {self.error}"


class HttpError(Exception):
    """An error that maps onto an HTTP error response."""

    code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def status(self) -> int:
        """Return the HTTP status code of the error response."""
        return self.code

    def body_text(self) -> str:
        """Return the plain-text body of the error response."""
        return str(self)


class BadRequest(HttpError):
    code = 400

    def __str__(self) -> str:
        return f"Bad Request: {self.message}"


class NotFound(HttpError):
    code = 404

    def __init__(self) -> None:
        super().__init__("")

    def __str__(self) -> str:
        return "Not Found"


class MethodNotAllowed(HttpError):
    code = 405

    def __init__(self) -> None:
        super().__init__("")

    def __str__(self) -> str:
        return "Method Not Allowed"


class InternalServerError(HttpError):
    code = 500

    def __str__(self) -> str:
        return f"Internal Server Error: {self.message}"


class RangeNotSatisfiable(HttpError):
    code = 416

    def __init__(self) -> None:
        super().__init__("")

    def __str__(self) -> str:
        return "Range Not Satisfiable"


class InvalidLength(HttpError):
    code = 416

    def __str__(self) -> str:
        return f"Invalid Length: {self.message}"


class CustomHttpError(HttpError):
    """An error with an arbitrary status code; its body is the bare message."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.code = status

    def __str__(self) -> str:
        return f"Status: {self.code}, Message: {self.message}"

    def body_text(self) -> str:
        return self.message