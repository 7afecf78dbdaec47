"""Baseline document builder usable by any content type.

DefaultResourceTypeHandler produces the generic document for a content item:
id, path, parent, resource type, readers and the mapped top-level
properties. Specialized handlers hold a reference to it and enrich what it
returns instead of subclassing it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from packages.core.events import ChangeOperation, ContentChangedEvent
from packages.core.ports.indexing_handler import (
    DOC_SOURCE_OBJECT,
    FIELD_ID,
    FIELD_PARENT,
    FIELD_PATH,
    FIELD_READERS,
    FIELD_RESOURCE_TYPE,
)
from packages.core.ports.repository_session import (
    ContentSession,
    RepositorySession,
    StorageError,
)
from packages.indexing.paths import document_id, parent_path, term_query
from packages.indexing.property_mapping import GENERIC_CONTENT_FIELDS, PropertyMapper
from packages.indexing.registry import HandlerRegistry
from packages.schemas.models import Content, IndexDocument

logger = logging.getLogger(__name__)


class DefaultResourceTypeHandler:
    """Generic indexing handler and baseline builder for chained handlers.

    Attributes:
        resource_types: Types this handler registers for when started.
        mapper: Mapping applied to the item's own properties.
    """

    def __init__(
        self,
        resource_types: Iterable[str] = (),
        mapper: PropertyMapper | None = None,
    ) -> None:
        self.resource_types = tuple(resource_types)
        self.mapper = mapper or PropertyMapper(GENERIC_CONTENT_FIELDS)
        self._active = False

    # ========== Lifecycle ==========

    def start(self, registry: HandlerRegistry) -> None:
        if self._active:
            return
        for resource_type in self.resource_types:
            registry.add_handler(resource_type, self)
        self._active = True

    def stop(self, registry: HandlerRegistry) -> None:
        if not self._active:
            return
        for resource_type in self.resource_types:
            registry.remove_handler(resource_type, self)
        self._active = False

    # ========== IndexingHandler ==========

    def get_documents(
        self,
        repository_session: RepositorySession,
        event: ContentChangedEvent,
    ) -> list[IndexDocument]:
        if event.operation is ChangeOperation.DELETED or not event.path.strip():
            return []

        content = load_content(repository_session, event.path)
        if content is None:
            return []

        return [self.build_document(content)]

    def get_delete_queries(
        self,
        repository_session: RepositorySession,
        event: ContentChangedEvent,
    ) -> list[str]:
        if event.operation is ChangeOperation.DELETED and event.path.strip():
            return [term_query(FIELD_ID, document_id(event.path))]
        return []

    # ========== Builder ==========

    def build_document(self, content: Content) -> IndexDocument:
        """Build the baseline document for ``content``.

        The returned document still carries the content under ``_source``.
        """
        doc = IndexDocument()
        doc.set_field(FIELD_ID, document_id(content.path))
        doc.set_field(FIELD_PATH, content.path)
        doc.set_field(FIELD_PARENT, parent_path(content.path))
        doc.set_field(FIELD_RESOURCE_TYPE, content.resource_type)
        if content.readers:
            doc.add_field(FIELD_READERS, list(content.readers))

        self.mapper.apply(doc, content.properties)

        doc.set_field(DOC_SOURCE_OBJECT, content)
        return doc


def load_content(repository_session: RepositorySession, path: str) -> Content | None:
    """Read one content item through the session, logging instead of raising.

    Returns None when the session has no content view, the item is absent or
    the store cannot be read.
    """
    session = repository_session.adapt_to(ContentSession)
    if session is None:
        logger.warning("Repository session cannot be adapted to a content session", extra={"path": path})
        return None

    try:
        content = session.get(path)
    except StorageError as e:
        logger.warning("Failed to read content", extra={"path": path, "error": str(e)}, exc_info=True)
        return None

    if content is None:
        logger.debug("Content not found", extra={"path": path})
    return content


__all__ = ["DefaultResourceTypeHandler", "load_content"]
