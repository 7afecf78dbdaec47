"""Repository session port definitions.

A RepositorySession is the opaque per-event handle passed to indexing
handlers. Handlers ask it for a typed view (for example a ContentSession) and
get ``None`` back when the underlying storage cannot be viewed that way.
"""

from __future__ import annotations

from typing import Any, Protocol, TypeVar, runtime_checkable

from packages.core.errors import IndexerError
from packages.schemas.models import Content

T = TypeVar("T")


class StorageError(IndexerError):
    """Raised when the content store cannot be read."""


class AccessDeniedError(StorageError):
    """Raised when the current session may not read a content item."""


@runtime_checkable
class ContentSession(Protocol):
    """Read-only view of the content store."""

    def get(self, path: str) -> Content | None:
        """Return the content at ``path`` or None when absent.

        Raises:
            AccessDeniedError: If the item exists but may not be read.
            StorageError: If the store cannot be reached.
        """
        ...

    def get_child(self, path: str, name: str) -> Content | None:
        """Return the named direct child of ``path`` or None when absent."""
        ...


class RepositorySession(Protocol):
    """Adaptable handle into the storage collaborator, scoped to one event."""

    def adapt_to(self, kind: type[T]) -> T | None:
        """Return a view of this session as ``kind`` or None."""
        ...


class SimpleRepositorySession:
    """RepositorySession over a fixed set of typed sessions.

    ``adapt_to`` returns the first supplied session that is an instance of
    the requested kind.
    """

    def __init__(self, *sessions: Any) -> None:
        self._sessions = sessions

    def adapt_to(self, kind: type[T]) -> T | None:
        for session in self._sessions:
            if isinstance(session, kind):
                return session
        return None


__all__ = [
    "AccessDeniedError",
    "ContentSession",
    "RepositorySession",
    "SimpleRepositorySession",
    "StorageError",
]
