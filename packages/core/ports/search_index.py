"""SearchIndex - Port interface for the search engine collaborator.

Core defines this interface; adapters (packages/search) implement it. Both
write operations are idempotent from the dispatcher's perspective: running a
delete query twice or upserting the same id twice is safe.
"""

from __future__ import annotations

from typing import Any, Protocol


class SearchIndex(Protocol):
    """Port interface for search index write operations."""

    def run_delete_query(self, query: str) -> None:
        """Delete every document matching ``query``.

        Raises:
            Exception: If the search engine rejects the query.
        """
        ...

    def upsert_document(self, document: dict[str, Any]) -> None:
        """Add or replace the document keyed by its ``id`` field.

        Raises:
            Exception: If the search engine rejects the document.
        """
        ...

    def commit(self) -> None:
        """Make the writes of the current batch visible."""
        ...


__all__ = ["SearchIndex"]
