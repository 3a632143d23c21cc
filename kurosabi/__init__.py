"""A lightweight asynchronous HTTP/1.1 server framework with a radix-tree router."""

__version__ = "0.3.10"

__all__ = [
    "app",
    "body",
    "demo",
    "errors",
    "header",
    "method",
    "path",
    "request",
    "response",
    "router",
    "server",
]