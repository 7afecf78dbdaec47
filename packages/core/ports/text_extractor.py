"""Port for turning rich or binary content into plain text."""

from __future__ import annotations

from typing import Protocol


class TextExtractor(Protocol):
    """Synchronous text extraction, one call per extractable property."""

    def extract_text(self, data: bytes | str) -> str:
        """Return the plain text carried by ``data``.

        Raises:
            ExtractionError: If the content cannot be decoded or parsed.
        """
        ...


__all__ = ["TextExtractor"]
