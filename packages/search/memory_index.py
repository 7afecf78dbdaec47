"""In-memory implementation of the SearchIndex port.

Documents are keyed by their ``id`` field so upserting the same id replaces
the stored document. Delete queries support the subset of query-string syntax
the handlers produce: ``*:*``, ``field:value`` and ``field:"quoted value"``.
"""

from __future__ import annotations

import copy
import logging
import re
from threading import Lock
from typing import Any

logger = logging.getLogger(__name__)

_TERM_QUERY = re.compile(
    r'^(?P<field>[A-Za-z_][\w.\-]*):(?:"(?P<quoted>(?:[^"\\]|\\.)*)"|(?P<bare>(?:[^\s\\]|\\.)+))$'
)
_ESCAPE = re.compile(r"\\(.)")


class InMemorySearchIndex:
    """Thread-safe dictionary-backed search index."""

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}
        self._lock = Lock()
        self.commits = 0

    def run_delete_query(self, query: str) -> None:
        """Delete matching documents.

        Raises:
            ValueError: If the query uses unsupported syntax.
        """
        query = query.strip()
        if query == "*:*":
            with self._lock:
                self._documents.clear()
            return

        match = _TERM_QUERY.match(query)
        if match is None:
            raise ValueError(f"Unsupported delete query: {query!r}")

        field = match.group("field")
        raw = match.group("quoted") if match.group("quoted") is not None else match.group("bare")
        value = _ESCAPE.sub(r"\1", raw)

        with self._lock:
            doomed = [doc_id for doc_id, doc in self._documents.items() if _matches(doc, field, value)]
            for doc_id in doomed:
                del self._documents[doc_id]
        logger.debug("Deleted %d documents for %s", len(doomed), query)

    def upsert_document(self, document: dict[str, Any]) -> None:
        """Store ``document`` under its id, replacing any previous version.

        Raises:
            ValueError: If the document has no id.
        """
        doc_id = document.get("id")
        if doc_id is None or doc_id == "":
            raise ValueError("document must have an id")
        with self._lock:
            self._documents[str(doc_id)] = copy.deepcopy(document)

    def commit(self) -> None:
        with self._lock:
            self.commits += 1

    def get(self, doc_id: str) -> dict[str, Any] | None:
        with self._lock:
            doc = self._documents.get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def documents(self) -> list[dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(doc) for doc in self._documents.values()]

    def __len__(self) -> int:
        return len(self._documents)


def _matches(document: dict[str, Any], field: str, value: str) -> bool:
    stored = document.get(field)
    if stored is None:
        return False
    values = stored if isinstance(stored, list) else [stored]
    return any(str(v) == value for v in values)


__all__ = ["InMemorySearchIndex"]
