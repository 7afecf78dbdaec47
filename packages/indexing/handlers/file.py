"""Indexing handler for file items.

Files keep their body and metadata on a designated content child. The handler
takes the baseline documents from the default builder and adds the mapped
properties of that child, including the extracted text of the binary body.
"""

from __future__ import annotations

import logging

from packages.core.events import ContentChangedEvent
from packages.core.ports.indexing_handler import DOC_SOURCE_OBJECT
from packages.core.ports.repository_session import (
    ContentSession,
    RepositorySession,
    StorageError,
)
from packages.core.ports.text_extractor import TextExtractor
from packages.indexing.handlers.default import DefaultResourceTypeHandler
from packages.indexing.property_mapping import (
    FILE_CONTENT_EXTRACTABLE,
    FILE_CONTENT_FIELDS,
    PropertyMapper,
)
from packages.indexing.registry import HandlerRegistry
from packages.schemas.models import Content, IndexDocument

logger = logging.getLogger(__name__)

FILE_RESOURCE_TYPE = "nt:file"
CONTENT_CHILD = "jcr:content"


class FileResourceTypeHandler:
    """Adds content-child properties to the default document of a file."""

    def __init__(
        self,
        default: DefaultResourceTypeHandler,
        *,
        extractor: TextExtractor | None = None,
        content_child: str = CONTENT_CHILD,
        mapper: PropertyMapper | None = None,
        resource_type: str = FILE_RESOURCE_TYPE,
        order: int = 0,
    ) -> None:
        self.default = default
        self.content_child = content_child
        self.mapper = mapper or PropertyMapper(
            FILE_CONTENT_FIELDS,
            extractable=FILE_CONTENT_EXTRACTABLE,
            extractor=extractor,
        )
        self.resource_type = resource_type
        self.order = order
        self._active = False

    def start(self, registry: HandlerRegistry) -> None:
        if self._active:
            return
        registry.add_handler(self.resource_type, self, self.order)
        self._active = True

    def stop(self, registry: HandlerRegistry) -> None:
        if not self._active:
            return
        registry.remove_handler(self.resource_type, self)
        self._active = False

    def get_documents(
        self,
        repository_session: RepositorySession,
        event: ContentChangedEvent,
    ) -> list[IndexDocument]:
        docs = self.default.get_documents(repository_session, event)
        if not docs:
            return docs

        session = repository_session.adapt_to(ContentSession)
        if session is None:
            return docs

        for doc in docs:
            source = doc.get_field_value(DOC_SOURCE_OBJECT)
            if not isinstance(source, Content):
                continue
            logger.debug("Adding file information to %s", source.path)
            self._add_content_child(session, source, doc)
        return docs

    def get_delete_queries(
        self,
        repository_session: RepositorySession,
        event: ContentChangedEvent,
    ) -> list[str]:
        return self.default.get_delete_queries(repository_session, event)

    def _add_content_child(self, session: ContentSession, source: Content, doc: IndexDocument) -> None:
        try:
            child = session.get_child(source.path, self.content_child)
        except StorageError as e:
            logger.error(
                "Failed to read content child",
                extra={"path": source.path, "child": self.content_child, "error": str(e)},
                exc_info=True,
            )
            return

        if child is None:
            logger.debug("Content node not present", extra={"path": source.path})
            return

        logger.debug("Loading content")
        self.mapper.apply(doc, child.properties)


__all__ = ["CONTENT_CHILD", "FILE_RESOURCE_TYPE", "FileResourceTypeHandler"]
