"""Exception hierarchy shared by the indexing pipeline."""


class IndexerError(Exception):
    """Base exception for all content indexer errors."""


class ExtractionError(IndexerError):
    """Raised when rich or binary content cannot be turned into plain text."""


class IndexWriteError(IndexerError):
    """Raised when the search index rejects a delete, an upsert or a commit."""


__all__ = ["ExtractionError", "IndexWriteError", "IndexerError"]
