"""The request target: raw path, query parameters and route fields."""

from __future__ import annotations


def _pairs(text: str) -> list[tuple[str, str]]:
    pairs = []
    for item in text.split("&"):
        key, sep, value = item.partition("=")
        if sep:
            pairs.append((key, value))
    return pairs


class Path:
    """A request path with lazily decoded segments and query, plus router fields."""

    def __init__(self, path: str = "") -> None:
        self.path = path
        self._segments: list[str] = []
        self._query: list[tuple[str, str]] = []
        self._fields: list[tuple[str, str]] = []

    def __repr__(self) -> str:
        return f"Path({self.path!r})"

    def raw_path(self) -> str:
        """Return the full target, e.g. '/api/v1/user?id=123'."""
        return self.path

    def path_only(self) -> str:
        """Return the non-empty '/'-separated segments joined by '/'."""
        if not self._segments:
            self._segments = [s for s in self.path.split("/") if s]
        return "/".join(self._segments)

    def get_query(self, key: str) -> str | None:
        """Return the first query parameter with this name, or None."""
        if not self._query:
            parts = self.path.split("?")
            self._query = _pairs(parts[1] if len(parts) > 1 else "")
        return next((v for k, v in self._query if k == key), None)

    def get_field(self, key: str) -> str | None:
        """Return a field captured by the router, or None."""
        return next((v for k, v in self._fields if k == key), None)

    def set_field(self, key: str, value: str) -> None:
        """Record a field captured by the router."""
        self._fields.append((key, value))

    def remove_field(self, key: str) -> str | None:
        """Remove the first field with this name and return its value."""
        for position, (k, v) in enumerate(self._fields):
            if k == key:
                del self._fields[position]
                return v
        return None