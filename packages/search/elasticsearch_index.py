"""Elasticsearch implementation of the SearchIndex port.

Provides:
- Index creation with keyword mappings for identity fields
- Delete operations via delete-by-query with a query_string query
- Upserts keyed by the document ``id`` field
- Index refresh on commit
- Retries with exponential backoff for connection failures

All operations use JSON structured logging and correlation ID tracking.
"""

from typing import Any

from elasticsearch import ConnectionError as EsConnectionError
from elasticsearch import BadRequestError, ConnectionTimeout, Elasticsearch

from packages.common.config import IndexerConfig
from packages.common.logging import get_logger
from packages.common.resilience import resilient_external_call

logger = get_logger(__name__)

_RETRYABLE: tuple[type[Exception], ...] = (EsConnectionError, ConnectionTimeout)

# Identity and path fields are exact terms, so a phrase delete on id or path
# matches whole values only.
INDEX_MAPPINGS: dict[str, Any] = {
    "properties": {
        "id": {"type": "keyword"},
        "path": {"type": "keyword"},
        "parent": {"type": "keyword"},
        "resourceType": {"type": "keyword"},
        "readers": {"type": "keyword"},
        "mimeType": {"type": "keyword"},
        "encoding": {"type": "keyword"},
        "tag": {"type": "keyword"},
        "taguuid": {"type": "keyword"},
        "filename": {"type": "keyword"},
        "title": {"type": "text"},
        "description": {"type": "text"},
        "content": {"type": "text"},
    }
}


class ElasticsearchSearchIndex:
    """Search index backed by an Elasticsearch index.

    Attributes:
        client: The underlying Elasticsearch client.
        index_name: Name of the Elasticsearch index.
        refresh_on_commit: Whether commit() refreshes the index.

    Example:
        >>> index = ElasticsearchSearchIndex(Elasticsearch("http://localhost:9200"), "content")
        >>> index.run_delete_query('id:"/content/doc1"')
        >>> index.upsert_document({"id": "/content/doc1", "resourceType": "nt:file"})
        >>> index.commit()
    """

    def __init__(
        self,
        client: Elasticsearch,
        index_name: str,
        *,
        refresh_on_commit: bool = True,
        max_attempts: int = 3,
        min_wait: float = 1,
        max_wait: float = 10,
    ) -> None:
        if not index_name:
            raise ValueError("index_name cannot be empty")

        self.client = client
        self.index_name = index_name
        self.refresh_on_commit = refresh_on_commit
        self._retrying = resilient_external_call(
            max_attempts=max_attempts,
            min_wait=min_wait,
            max_wait=max_wait,
            retry_on=_RETRYABLE,
        )

        logger.info(
            "Elasticsearch search index initialized",
            extra={"index_name": index_name, "max_attempts": max_attempts},
        )

    @classmethod
    def from_config(cls, config: IndexerConfig) -> "ElasticsearchSearchIndex":
        api_key = config.elasticsearch_api_key.get_secret_value() if config.elasticsearch_api_key else None
        client = Elasticsearch(
            config.elasticsearch_url,
            api_key=api_key,
            request_timeout=config.elasticsearch_timeout,
        )
        return cls(client, config.elasticsearch_index, max_attempts=config.index_max_attempts)

    def ensure_index(self) -> None:
        """Create the index with ``INDEX_MAPPINGS`` unless it already exists.

        An existing index is left untouched, including its mappings. Losing a
        creation race against another worker is not an error.

        Raises:
            elasticsearch.ApiError: If Elasticsearch rejects the index creation.
        """
        if self._retrying(self.client.indices.exists)(index=self.index_name):
            logger.debug("Index already exists", extra={"index_name": self.index_name})
            return

        try:
            self._retrying(self.client.indices.create)(index=self.index_name, mappings=INDEX_MAPPINGS)
        except BadRequestError as e:
            if e.error != "resource_already_exists_exception":
                raise
            logger.warning("Index already exists", extra={"index_name": self.index_name})
            return

        logger.info("Index created", extra={"index_name": self.index_name})

    def run_delete_query(self, query: str) -> None:
        """Delete every document matching a query-string query.

        Raises:
            elasticsearch.ApiError: If Elasticsearch rejects the query.
        """
        response = self._retrying(self.client.delete_by_query)(
            index=self.index_name,
            query={"query_string": {"query": query}},
            conflicts="proceed",
        )
        logger.debug(
            "Delete by query completed",
            extra={"query": query, "deleted": _body(response).get("deleted")},
        )

    def upsert_document(self, document: dict[str, Any]) -> None:
        """Index ``document`` under its id, replacing any previous version.

        Raises:
            ValueError: If the document has no id.
            elasticsearch.ApiError: If Elasticsearch rejects the document.
        """
        doc_id = document.get("id")
        if doc_id is None or doc_id == "":
            raise ValueError("document must have an id")

        self._retrying(self.client.index)(
            index=self.index_name,
            id=str(doc_id),
            document=document,
        )
        logger.debug("Upserted document", extra={"doc_id": doc_id})

    def commit(self) -> None:
        if not self.refresh_on_commit:
            return
        self._retrying(self.client.indices.refresh)(index=self.index_name)

    def close(self) -> None:
        self.client.close()


def _body(response: Any) -> dict[str, Any]:
    body = getattr(response, "body", response)
    return body if isinstance(body, dict) else {}


__all__ = ["INDEX_MAPPINGS", "ElasticsearchSearchIndex"]
