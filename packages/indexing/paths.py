"""Path and query-string helpers for index documents."""

import re

# Lucene query-string special characters.
_QUERY_SPECIAL = re.compile(r'([+\-!(){}\[\]^"~*?:\\/&|])')


def parent_path(path: str) -> str:
    """Return the parent of an absolute content path.

    A trailing slash is ignored and the root is its own parent.

    Example:
        >>> parent_path("/content/doc1/jcr:content")
        '/content/doc1'
        >>> parent_path("/content")
        '/'
    """
    if path == "/":
        return "/"

    i = path.rfind("/")
    if i == len(path) - 1:
        i = path[:i].rfind("/")

    if i > 0:
        return path[:i]
    if i == 0:
        return "/"
    return path


def child_path(path: str, name: str) -> str:
    """Join a child name onto an absolute path."""
    return f"{path.rstrip('/')}/{name}"


def document_id(path: str) -> str:
    """Deterministic document id for a content path."""
    return path


def escape_query_value(value: str) -> str:
    return _QUERY_SPECIAL.sub(r"\\\1", value)


def term_query(field: str, value: str) -> str:
    """Build an exact-match query-string clause, e.g. ``id:"/content/doc1"``."""
    return f'{field}:"{escape_query_value(value)}"'


__all__ = ["child_path", "document_id", "escape_query_value", "parent_path", "term_query"]
