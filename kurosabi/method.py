"""HTTP request methods and common status codes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar

_STANDARD = (
    "GET",
    "POST",
    "HEAD",
    "PUT",
    "DELETE",
    "OPTIONS",
    "TRACE",
    "CONNECT",
    "PATCH",
)


@dataclass(frozen=True)
class Method:
    """An HTTP method; any token outside the standard set is kept verbatim."""

    name: str

    GET: ClassVar[Method]
    POST: ClassVar[Method]
    HEAD: ClassVar[Method]
    PUT: ClassVar[Method]
    DELETE: ClassVar[Method]
    OPTIONS: ClassVar[Method]
    TRACE: ClassVar[Method]
    CONNECT: ClassVar[Method]
    PATCH: ClassVar[Method]

    @classmethod
    def from_str(cls, text: str) -> Method:
        """Build a method from its request-line token (case-sensitive)."""
        return cls(text)

    def to_str(self) -> str:
        """Return the method token."""
        return self.name

    @property
    def is_standard(self) -> bool:
        """Whether this is one of the methods defined by HTTP/1.1."""
        return self.name in _STANDARD

    def __str__(self) -> str:
        return self.name


for _token in _STANDARD:
    setattr(Method, _token, Method(_token))
del _token


class StatusCode(IntEnum):
    """A few frequently used HTTP status codes."""

    CONTINUE = 100
    OK = 200
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500