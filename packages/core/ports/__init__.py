"""Ports for core use-cases."""

from __future__ import annotations

from packages.core.ports.event_publisher import ChangeEventPublisher
from packages.core.ports.indexing_handler import HandlerLifecycle, IndexingHandler
from packages.core.ports.repository_session import (
    AccessDeniedError,
    ContentSession,
    RepositorySession,
    SimpleRepositorySession,
    StorageError,
)
from packages.core.ports.search_index import SearchIndex
from packages.core.ports.text_extractor import TextExtractor

__all__ = [
    "AccessDeniedError",
    "ChangeEventPublisher",
    "ContentSession",
    "HandlerLifecycle",
    "IndexingHandler",
    "RepositorySession",
    "SearchIndex",
    "SimpleRepositorySession",
    "StorageError",
    "TextExtractor",
]
