"""In-memory implementation of the ContentSession port.

Used by the CLI's local dispatch command and by tests. Children are stored as
ordinary items at ``<parent>/<name>``.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from threading import RLock
from typing import Any

from packages.core.ports.repository_session import AccessDeniedError
from packages.indexing.paths import child_path, parent_path
from packages.schemas.models import Content


class InMemoryContentStore:
    """Thread-safe dictionary-backed content store.

    Attributes:
        denied: Paths whose reads raise AccessDeniedError.
    """

    def __init__(self, items: Iterable[Content] = (), *, denied: Iterable[str] = ()) -> None:
        self._items: dict[str, Content] = {}
        self._lock = RLock()
        self.denied = set(denied)
        for item in items:
            self.put(item)

    @classmethod
    def from_json_file(cls, path: str | Path) -> InMemoryContentStore:
        """Load a JSON list of content objects (``path``, ``resource_type``, ...)."""
        with open(path, encoding="utf-8") as f:
            raw: list[dict[str, Any]] = json.load(f)
        return cls(Content.model_validate(entry) for entry in raw)

    def put(self, content: Content) -> None:
        """Store ``content`` and record it as a child of its parent, if present."""
        with self._lock:
            self._items[content.path] = content
            parent = self._items.get(parent_path(content.path))
            if parent is not None and parent.path != content.path:
                name = content.path.rsplit("/", 1)[-1]
                if name not in parent.children:
                    self._items[parent.path] = parent.model_copy(
                        update={"children": [*parent.children, name]}
                    )

    def remove(self, path: str) -> None:
        with self._lock:
            self._items.pop(path, None)

    def get(self, path: str) -> Content | None:
        if path in self.denied:
            raise AccessDeniedError(f"Access denied to {path}")
        with self._lock:
            return self._items.get(path)

    def get_child(self, path: str, name: str) -> Content | None:
        return self.get(child_path(path, name))

    def __len__(self) -> int:
        return len(self._items)


__all__ = ["InMemoryContentStore"]
