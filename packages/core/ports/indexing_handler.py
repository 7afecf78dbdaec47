"""IndexingHandler - Port interface for content-type indexing plugins.

An indexing handler generates the documents to add to the search index and the
queries identifying documents to remove, in response to a change event.
Handlers register themselves against a HandlerRegistry on start and
de-register on stop. The repository session they receive can be adapted to a
typed storage session; handlers must not write through it.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

from packages.core.events import ContentChangedEvent
from packages.core.ports.repository_session import RepositorySession
from packages.schemas.models import IndexDocument

if TYPE_CHECKING:
    from packages.indexing.registry import HandlerRegistry

# Carries the live Content object so later handlers in a chain can read it.
# It is removed before the document reaches the index.
DOC_SOURCE_OBJECT = "_source"

# Unique document id, derived from the content path.
FIELD_ID = "id"

# Principals that can read the item, multivalued.
FIELD_READERS = "readers"

# Resource type of the item.
FIELD_RESOURCE_TYPE = "resourceType"

# Path to the object.
FIELD_PATH = "path"

# Path of the object's parent.
FIELD_PARENT = "parent"

# Plain text extracted from rich or binary content.
FIELD_CONTENT = "content"


class IndexingHandler(Protocol):
    """Contract every content-type plugin implements."""

    def get_documents(
        self,
        repository_session: RepositorySession,
        event: ContentChangedEvent,
    ) -> Sequence[IndexDocument]:
        """Get the documents to add to the index for an event.

        Recoverable per-item failures (unreadable content, extraction errors)
        must be logged and produce a partial or empty result instead of raising.

        Args:
            repository_session: An adaptable repository session.
            event: The event that triggered indexing.

        Returns:
            Sequence[IndexDocument]: Documents to be indexed.
        """
        ...

    def get_delete_queries(
        self,
        repository_session: RepositorySession,
        event: ContentChangedEvent,
    ) -> Sequence[str] | None:
        """Get queries to execute as delete operations for an event.

        Delete operations are performed before add operations. ``None`` is
        treated the same as an empty sequence.

        Args:
            repository_session: An adaptable repository session.
            event: The event that triggered indexing.

        Returns:
            Sequence[str] | None: Query strings to run as deletes.
        """
        ...


class HandlerLifecycle(Protocol):
    """Activation boundary a plugin host drives around a handler's lifetime."""

    def start(self, registry: HandlerRegistry) -> None:
        """Register with the registry. Repeated calls must be no-ops."""
        ...

    def stop(self, registry: HandlerRegistry) -> None:
        """De-register from the registry. Calls while stopped must be no-ops."""
        ...


__all__ = [
    "DOC_SOURCE_OBJECT",
    "FIELD_CONTENT",
    "FIELD_ID",
    "FIELD_PARENT",
    "FIELD_PATH",
    "FIELD_READERS",
    "FIELD_RESOURCE_TYPE",
    "HandlerLifecycle",
    "IndexingHandler",
]
