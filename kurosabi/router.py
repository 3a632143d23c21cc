"""A radix-tree router mapping method and path to a handler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from kurosabi.method import Method


@dataclass
class _Node:
    label: str = ""
    param_name: str | None = None
    fixed: dict[str, list[_Node]] = field(default_factory=dict)
    param_child: _Node | None = None
    wild_child: _Node | None = None
    handler: Any = None

    def split(self, at: int) -> None:
        """Move everything after label[:at] into a new child node."""
        tail = _Node(
            label=self.label[at:],
            fixed=self.fixed,
            param_child=self.param_child,
            wild_child=self.wild_child,
            handler=self.handler,
        )
        self.label = self.label[:at]
        self.fixed = {tail.label[0]: [tail]}
        self.param_child = None
        self.wild_child = None
        self.handler = None


def _common_prefix(a: str, b: str) -> int:
    count = 0
    for x, y in zip(a, b):
        if x != y:
            break
        count += 1
    return count


def _insert_static(node: _Node, seg: str) -> _Node:
    while True:
        bucket = node.fixed.setdefault(seg[0], [])
        for child in bucket:
            lcp = _common_prefix(child.label, seg)
            if lcp == 0:
                continue
            if lcp < len(child.label):
                child.split(lcp)
            if lcp == len(seg):
                return child
            node, seg = child, seg[lcp:]
            break
        else:
            leaf = _Node(label=seg)
            bucket.append(leaf)
            return leaf


class Router:
    """Routes supporting static segments, ':name' parameters and a trailing '*'."""

    def __init__(self) -> None:
        self._trees: dict[Method, _Node] = {}
        self._not_found: Any = None
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def register(self, method: Method, pattern: str, handler: Any) -> None:
        """Add a route; raises RuntimeError once built, ValueError on duplicates."""
        if self._sealed:
            raise RuntimeError("router is sealed")
        path = pattern.lstrip("/")
        node = self._trees.setdefault(method, _Node())

        while path:
            if path[0] == ":":
                end = path.find("/")
                if end < 0:
                    end = len(path)
                name = path[1:end]
                path = path[end:].lstrip("/")
                if node.param_child is None:
                    node.param_child = _Node()
                node.param_child.param_name = name
                node = node.param_child
            elif path[0] == "*":
                if node.wild_child is None:
                    node.wild_child = _Node()
                node = node.wild_child
                path = ""
            else:
                end = next((i for i, ch in enumerate(path) if ch in ":*/"), len(path))
                seg = path[:end]
                path = path[end:].lstrip("/")
                node = _insert_static(node, seg)

        if node.handler is not None:
            raise ValueError(f"duplicate route: {method} {pattern}")
        node.handler = handler

    def register_not_found(self, handler: Any) -> None:
        """Set the handler used when a path matches nothing."""
        self._not_found = handler

    def build(self) -> None:
        """Finish registration; further routes are rejected."""
        self._sealed = True

    def route(self, req: Any) -> Any:
        """Find the handler for a request and store captured fields on req.path."""
        node = self._trees.get(req.method)
        if node is None:
            return None
        full = req.path.path
        path = full.split("?")[0].split("#")[0].lstrip("/")

        i = 0
        params: list[tuple[str, str]] = []
        while i < len(path):
            matched = False
            for child in node.fixed.get(path[i], ()):
                if path.startswith(child.label, i):
                    i += len(child.label)
                    if i < len(path) and path[i] == "/":
                        i += 1
                    node = child
                    matched = True
                    break
            if matched:
                continue
            if node.param_child is not None:
                start = i
                slash = path.find("/", i)
                i = len(path) if slash < 0 else slash
                child = node.param_child
                if child.param_name is not None:
                    params.append((child.param_name, path[start:i]))
                if i < len(path):
                    i += 1
                node = child
                continue
            if node.wild_child is not None:
                params.append(("*", path[i:]))
                node = node.wild_child
                break
            return self._not_found

        for key, value in params:
            req.path.set_field(key, value)
        return node.handler