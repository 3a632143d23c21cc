import pytest

from kurosabi.errors import (
    BadRequest,
    ConnectionIOError,
    CustomHttpError,
    HttpError,
    InternalServerError,
    InvalidHttpHeader,
    InvalidHttpRangeHeader,
    InvalidLength,
    KurosabiError,
    MethodNotAllowed,
    NotFound,
    RangeNotSatisfiable,
)


def test_invalid_http_header_message():
    error = InvalidHttpHeader("GARBAGE")
    assert str(error) == "Invalid http header: GARBAGE"
    assert error.header == "GARBAGE"


def test_invalid_range_header_message():
    assert str(InvalidHttpRangeHeader("bytes=x")) == "Invalid http range header: bytes=x"


def test_io_error_wraps_cause():
    cause = OSError("broken pipe")
    error = ConnectionIOError(cause)
    assert error.error is cause
    assert str(error) == "IO error: broken pipe"


def test_connection_errors_share_base():
    header_error = InvalidHttpHeader("x")
    assert isinstance(header_error, KurosabiError)
    assert str(header_error) == "Invalid http header: x"

    io_error = ConnectionIOError(OSError("x"))
    assert isinstance(io_error, KurosabiError)
    assert str(io_error) == "IO error: x"


@pytest.mark.parametrize(
    "error, status, text",
    [
        (BadRequest("Invalid Range"), 400, "Bad Request: Invalid Range"),
        (NotFound(), 404, "Not Found"),
        (MethodNotAllowed(), 405, "Method Not Allowed"),
        (InternalServerError("seek failed"), 500, "Internal Server Error: seek failed"),
        (RangeNotSatisfiable(), 416, "Range Not Satisfiable"),
        (InvalidLength("abc"), 416, "Invalid Length: abc"),
    ],
)
def test_http_error_status_and_body(error, status, text):
    assert error.status() == status
    assert error.body_text() == text
    assert str(error) == text


def test_custom_error():
    error = CustomHttpError(418, "teapot")
    assert error.status() == 418
    assert error.body_text() == "teapot"
    assert str(error) == "Status: 418, Message: teapot"


def test_http_errors_share_base():
    error = NotFound()
    assert isinstance(error, HttpError)
    assert not isinstance(error, KurosabiError)
    assert error.status() == 404
    assert error.body_text() == "Not Found"