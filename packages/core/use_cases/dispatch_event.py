"""IndexingDispatcher - Core orchestration for change-event indexing.

Orchestrates one change event through the indexing pipeline:
RepositorySession (resolve type) → HandlerRegistry → IndexingHandler(s) → SearchIndex

Per event the dispatcher walks RECEIVED → TYPE_RESOLVED → HANDLERS_INVOKED →
DELETES_APPLIED → ADDS_APPLIED → DONE and keeps no state afterwards, so distinct
events may be dispatched concurrently from several threads.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, TypeVar

from packages.common.tracing import TracingContext
from packages.core.errors import IndexWriteError
from packages.core.events import ContentChangedEvent
from packages.core.ports.indexing_handler import DOC_SOURCE_OBJECT, FIELD_ID, IndexingHandler
from packages.core.ports.repository_session import (
    ContentSession,
    RepositorySession,
    StorageError,
)
from packages.core.ports.search_index import SearchIndex
from packages.schemas.models import IndexDocument

logger = logging.getLogger(__name__)

T = TypeVar("T")


class HandlerSource(Protocol):
    """Port for resolving the handlers of a resource type."""

    def resolve(self, resource_type: str) -> tuple[IndexingHandler, ...]:
        ...


class DispatchState(str, Enum):
    """Processing states of a single change event."""

    RECEIVED = "received"
    TYPE_RESOLVED = "type_resolved"
    HANDLERS_INVOKED = "handlers_invoked"
    DELETES_APPLIED = "deletes_applied"
    ADDS_APPLIED = "adds_applied"
    DONE = "done"
    DISCARDED = "discarded"


@dataclass(slots=True, frozen=True)
class DispatchResult:
    """Summary of one dispatch cycle."""

    path: str
    resource_type: str
    state: DispatchState
    handlers_invoked: int = 0
    handler_failures: int = 0
    deletes_applied: int = 0
    documents_indexed: int = 0


class IndexingDispatcher:
    """Use case turning change events into search index updates.

    For every event, the delete queries of all resolved handlers are collected
    and applied before any document produced for that event is upserted.
    Handler failures are isolated and logged; index failures are raised as
    IndexWriteError.

    NO framework dependencies - only imports from packages.core and packages.schemas.

    Attributes:
        registry: Source of the ordered handler snapshot per resource type.
        index: Search index the updates are applied to.
    """

    def __init__(self, registry: HandlerSource, index: SearchIndex) -> None:
        self.registry = registry
        self.index = index
        logger.info("Initialized IndexingDispatcher")

    def dispatch(
        self,
        repository_session: RepositorySession,
        event: ContentChangedEvent,
    ) -> DispatchResult:
        """Index a single change event.

        Args:
            repository_session: Adaptable session scoped to this event.
            event: The change event to process.

        Returns:
            DispatchResult: Final state and counts for the event.

        Raises:
            IndexWriteError: If the search index rejects a delete, add or commit.
        """
        with TracingContext():
            return self._dispatch(repository_session, event)

    def _dispatch(
        self,
        repository_session: RepositorySession,
        event: ContentChangedEvent,
    ) -> DispatchResult:
        path = event.path
        self._transition(DispatchState.RECEIVED, path)

        if not path or not path.strip():
            logger.debug("Discarding change event with blank path", extra={"resource_type": event.resource_type})
            return DispatchResult(
                path=path,
                resource_type=event.resource_type,
                state=DispatchState.DISCARDED,
            )

        resource_type = self._resolve_type(repository_session, event)
        self._transition(DispatchState.TYPE_RESOLVED, path, resource_type=resource_type)

        handlers = self.registry.resolve(resource_type)
        if not handlers:
            logger.debug("No handlers registered", extra={"path": path, "resource_type": resource_type})

        failures = 0
        delete_queries: list[str] = []
        for handler in handlers:
            queries, failed = self._invoke(handler, handler.get_delete_queries, repository_session, event)
            failures += failed
            for query in queries or ():
                if query and query not in delete_queries:
                    delete_queries.append(query)

        documents: dict[str, IndexDocument] = {}
        for handler in handlers:
            docs, failed = self._invoke(handler, handler.get_documents, repository_session, event)
            failures += failed
            for doc in docs or ():
                self._merge(documents, doc, handler)

        self._transition(
            DispatchState.HANDLERS_INVOKED,
            path,
            handlers=len(handlers),
            deletes=len(delete_queries),
            documents=len(documents),
        )

        for query in delete_queries:
            self._write("delete", path, self.index.run_delete_query, query)
        self._transition(DispatchState.DELETES_APPLIED, path)

        for doc in documents.values():
            doc.remove_field(DOC_SOURCE_OBJECT)
            self._write("upsert", path, self.index.upsert_document, doc.to_dict())
        self._transition(DispatchState.ADDS_APPLIED, path)

        if delete_queries or documents:
            self._write("commit", path, self.index.commit)

        self._transition(DispatchState.DONE, path)
        logger.info(
            "Dispatched change event",
            extra={
                "path": path,
                "resource_type": resource_type,
                "operation": event.operation.value,
                "deletes": len(delete_queries),
                "documents": len(documents),
                "handler_failures": failures,
            },
        )
        return DispatchResult(
            path=path,
            resource_type=resource_type,
            state=DispatchState.DONE,
            handlers_invoked=len(handlers),
            handler_failures=failures,
            deletes_applied=len(delete_queries),
            documents_indexed=len(documents),
        )

    def _resolve_type(self, repository_session: RepositorySession, event: ContentChangedEvent) -> str:
        # Content that no longer exists (deleted events) keeps the event's type.
        try:
            session = repository_session.adapt_to(ContentSession)
            content = session.get(event.path) if session is not None else None
        except StorageError as e:
            logger.warning(
                "Could not read resource type, using event type",
                extra={"path": event.path, "error": str(e)},
            )
            return event.resource_type
        except Exception:
            logger.exception(
                "Unexpected error reading resource type, using event type",
                extra={"path": event.path},
            )
            return event.resource_type

        if content is not None and content.resource_type:
            return content.resource_type
        return event.resource_type

    @staticmethod
    def _invoke(
        handler: IndexingHandler,
        method: Callable[[RepositorySession, ContentChangedEvent], Sequence[T] | None],
        repository_session: RepositorySession,
        event: ContentChangedEvent,
    ) -> tuple[Sequence[T] | None, int]:
        try:
            return method(repository_session, event), 0
        except Exception:
            logger.exception(
                "Indexing handler failed",
                extra={"handler": type(handler).__name__, "path": event.path},
            )
            return None, 1

    @staticmethod
    def _merge(documents: dict[str, IndexDocument], doc: IndexDocument, handler: IndexingHandler) -> None:
        doc_id = doc.get_field_value(FIELD_ID)
        if doc_id is None or doc_id == "":
            logger.error("Dropping document without id", extra={"handler": type(handler).__name__})
            return

        key = str(doc_id)
        existing = documents.get(key)
        if existing is None:
            documents[key] = doc
            return

        # Later handlers in the chain win on the fields they set.
        for name in doc:
            existing.set_field(name, doc.get_field_values(name))

    @staticmethod
    def _write(kind: str, path: str, operation: Callable[..., None], *args: object) -> None:
        try:
            operation(*args)
        except Exception as e:
            logger.error(
                "Search index write failed",
                extra={"operation": kind, "path": path, "error": str(e)},
            )
            raise IndexWriteError(f"Index {kind} failed for {path}: {e}") from e

    @staticmethod
    def _transition(state: DispatchState, path: str, **details: object) -> None:
        logger.debug("Dispatch state %s", state.value, extra={"path": path, **details})


__all__ = ["DispatchResult", "DispatchState", "HandlerSource", "IndexingDispatcher"]
