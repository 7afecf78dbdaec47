"""Indexing handler for page content items.

A page content item holds the markup body of a page in a single property. The
indexed document points at the page that owns the body (the item's parent)
and carries the body's plain text in the content field.
"""

from __future__ import annotations

import logging

from packages.core.errors import ExtractionError
from packages.core.events import ContentChangedEvent
from packages.core.ports.indexing_handler import DOC_SOURCE_OBJECT, FIELD_CONTENT, FIELD_PATH
from packages.core.ports.repository_session import RepositorySession
from packages.core.ports.text_extractor import TextExtractor
from packages.indexing.handlers.default import DefaultResourceTypeHandler
from packages.indexing.paths import parent_path
from packages.indexing.registry import HandlerRegistry
from packages.schemas.models import Content, IndexDocument

logger = logging.getLogger(__name__)

PAGE_CONTENT_RESOURCE_TYPE = "sakai/pagecontent"
PAGE_CONTENT_PROPERTY = "sakai:pagecontent"


class PageContentIndexingHandler:
    """Extracts the text of a page body into the default document."""

    def __init__(
        self,
        default: DefaultResourceTypeHandler,
        extractor: TextExtractor,
        *,
        resource_type: str = PAGE_CONTENT_RESOURCE_TYPE,
        body_property: str = PAGE_CONTENT_PROPERTY,
        order: int = 0,
    ) -> None:
        self.default = default
        self.extractor = extractor
        self.resource_type = resource_type
        self.body_property = body_property
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
        documents = self.default.get_documents(repository_session, event)
        for doc in documents:
            content = doc.get_field_value(DOC_SOURCE_OBJECT)
            if not isinstance(content, Content):
                continue

            # set the path of the parent that holds the content
            doc.set_field(FIELD_PATH, parent_path(content.path))

            text = self._extract_body(content)
            if text:
                doc.set_field(FIELD_CONTENT, text)

        logger.debug("Got documents %s", documents)
        return documents

    def get_delete_queries(
        self,
        repository_session: RepositorySession,
        event: ContentChangedEvent,
    ) -> None:
        return None

    def _extract_body(self, content: Content) -> str | None:
        body = content.get_property(self.body_property)
        if body is None or body == "" or body == b"":
            logger.debug("No page body", extra={"path": content.path})
            return None

        try:
            return self.extractor.extract_text(body)
        except ExtractionError as e:
            logger.warning(
                "Failed to extract page body",
                extra={"path": content.path, "error": str(e)},
                exc_info=True,
            )
            return None


__all__ = ["PAGE_CONTENT_PROPERTY", "PAGE_CONTENT_RESOURCE_TYPE", "PageContentIndexingHandler"]
