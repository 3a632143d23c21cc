"""An ordered, case-insensitive list of HTTP header fields."""

from __future__ import annotations

from collections.abc import Iterator


class Header:
    """HTTP header fields kept in insertion order; keys are stored upper-cased."""

    def __init__(self) -> None:
        self._headers: list[tuple[str, str]] = []

    def __len__(self) -> int:
        return len(self._headers)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(list(self._headers))

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.index_of(key) is not None

    def __repr__(self) -> str:
        return f"Header({self._headers!r})"

    def set(self, key: str, value: str) -> None:
        """Append a field; existing fields with the same key are kept."""
        self._headers.append((key.upper(), value))

    def remove(self, key: str) -> None:
        """Remove every field with this key."""
        wanted = key.upper()
        self._headers = [(k, v) for k, v in self._headers if k.upper() != wanted]

    def remove_all(self, key: str) -> None:
        """Remove every field with this key."""
        self.remove(key)

    def get(self, key: str) -> str | None:
        """Return the first value for the key, or None."""
        wanted = key.upper()
        return next((v for k, v in self._headers if k.upper() == wanted), None)

    def get_all(self, key: str) -> list[str]:
        """Return every value for the key, in order."""
        wanted = key.upper()
        return [v for k, v in self._headers if k.upper() == wanted]

    def at(self, index: int) -> tuple[str, str] | None:
        """Return the field at a position, or None when out of range."""
        if 0 <= index < len(self._headers):
            return self._headers[index]
        return None

    def delete_at(self, index: int) -> None:
        """Remove the field at a position; raises IndexError when out of range."""
        if not 0 <= index < len(self._headers):
            raise IndexError(f"header index {index} out of range")
        del self._headers[index]

    def index_of(self, key: str) -> int | None:
        """Return the position of the first field with the key, or None."""
        wanted = key.upper()
        return next(
            (i for i, (k, _) in enumerate(self._headers) if k.upper() == wanted),
            None,
        )

    def indexes_of(self, key: str) -> list[int]:
        """Return the positions of every field with the key."""
        wanted = key.upper()
        return [i for i, (k, _) in enumerate(self._headers) if k.upper() == wanted]

    def items(self) -> list[tuple[str, str]]:
        """Return all fields as (key, value) pairs in order."""
        return list(self._headers)

    def host(self) -> str | None:
        return self.get("HOST")

    def user_agent(self) -> str | None:
        return self.get("USER-AGENT")

    def accept(self) -> str | None:
        return self.get("ACCEPT")

    def accept_language(self) -> str | None:
        return self.get("ACCEPT-LANGUAGE")

    def accept_encoding(self) -> str | None:
        return self.get("ACCEPT-ENCODING")

    def connection(self) -> str | None:
        return self.get("CONNECTION")

    def referer(self) -> str | None:
        return self.get("REFERER")

    def content_length(self) -> str | None:
        return self.get("CONTENT-LENGTH")

    def content_type(self) -> str | None:
        return self.get("CONTENT-TYPE")

    def authorization(self) -> str | None:
        return self.get("AUTHORIZATION")

    def get_cookie(self, key: str) -> str | None:
        """Look up a cookie by name across all Cookie fields."""
        for cookie in self.get_all("COOKIE"):
            for pair in cookie.split(";"):
                name, sep, value = pair.strip().partition("=")
                if sep and name.strip() == key:
                    return value.strip()
        return None

    def set_cookie(self, key: str, value: str) -> None:
        """Append a Set-Cookie field of the form key=value."""
        self.set("Set-Cookie", f"{key}={value}")

    def del_cookie(self, key: str) -> None:
        """Remove Set-Cookie fields that set the named cookie."""
        prefix = f"{key}="
        self._headers = [
            (k, v)
            for k, v in self._headers
            if not (k.upper() == "SET-COOKIE" and v.startswith(prefix))
        ]

    def accept_encodings(self) -> list[str] | None:
        """Return Accept-Encoding names ordered by descending q-value, or None."""
        raw = self.get("ACCEPT-ENCODING")
        if raw is None:
            return None
        ranked = []
        for item in raw.split(","):
            name, *params = item.strip().split(";")
            quality = 1.0
            q_param = next((p.strip() for p in params if p.strip().startswith("q=")), None)
            if q_param is not None:
                try:
                    quality = float(q_param[2:])
                except ValueError:
                    quality = 1.0
            ranked.append((name.strip(), quality))
        ranked.sort(key=lambda pair: pair[1], reverse=True)
        return [name for name, _ in ranked]