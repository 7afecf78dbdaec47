"""Mapping of content properties onto index fields.

A PropertyMapper holds a name table (content property -> index field) and the
set of properties whose values are rich or binary content that must go
through the text extractor. Properties missing from the table are skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

from packages.core.errors import ExtractionError
from packages.core.ports.text_extractor import TextExtractor
from packages.schemas.models import IndexDocument

logger = logging.getLogger(__name__)

# Properties of a file's content child.
FILE_CONTENT_FIELDS: Mapping[str, str] = {
    "jcr:mimeType": "mimeType",
    "jcr:encoding": "encoding",
    "jcr:lastModified": "lastModified",
    "jcr:data": "content",
}
FILE_CONTENT_EXTRACTABLE = frozenset({"jcr:data"})

# Top-level properties shared by every content type.
GENERIC_CONTENT_FIELDS: Mapping[str, str] = {
    "title": "title",
    "sakai:description": "description",
    "sakai:tags": "tag",
    "sakai:tag-uuid": "taguuid",
    "sakai:pooled-content-file-name": "filename",
}


class PropertyMapper:
    """Translate content properties into index field values."""

    def __init__(
        self,
        name_map: Mapping[str, str],
        extractable: Iterable[str] = (),
        extractor: TextExtractor | None = None,
    ) -> None:
        self.name_map = dict(name_map)
        self.extractable = frozenset(extractable)
        self.extractor = extractor

        missing = self.extractable - set(self.name_map)
        if missing:
            raise ValueError(f"extractable properties must be mapped: {sorted(missing)}")

    def index_name(self, property_name: str) -> str | None:
        return self.name_map.get(property_name)

    def convert(self, property_name: str, value: Any) -> list[Any]:
        """Convert a property value into zero or more index values.

        Extraction failures are logged and yield no values.
        """
        if value is None:
            return []

        if property_name in self.extractable:
            return self._extract(property_name, value)

        if isinstance(value, (list, tuple, set, frozenset)):
            return [converted for item in value for converted in self._scalar(item)]
        return self._scalar(value)

    def apply(self, document: IndexDocument, properties: Mapping[str, Any]) -> int:
        """Add every mappable property to ``document``; return the number of values added."""
        added = 0
        for name, value in properties.items():
            mapped = self.index_name(name)
            if mapped is None:
                continue
            for converted in self.convert(name, value):
                logger.debug("Storing %s as %s", name, mapped)
                document.add_field(mapped, converted)
                added += 1
        return added

    def _extract(self, property_name: str, value: Any) -> list[Any]:
        if self.extractor is None:
            logger.debug("No text extractor configured, skipping %s", property_name)
            return []
        try:
            text = self.extractor.extract_text(value)
        except ExtractionError as e:
            logger.warning(
                "Text extraction failed",
                extra={"property": property_name, "error": str(e)},
            )
            return []
        return [text] if text else []

    @staticmethod
    def _scalar(value: Any) -> list[Any]:
        if value is None:
            return []
        if isinstance(value, (datetime, date)):
            return [value.isoformat()]
        if isinstance(value, (str, bool, int, float)):
            return [value]
        if isinstance(value, (bytes, bytearray)):
            # Raw binary is only indexable through extraction.
            return []
        return [str(value)]


__all__ = [
    "FILE_CONTENT_EXTRACTABLE",
    "FILE_CONTENT_FIELDS",
    "GENERIC_CONTENT_FIELDS",
    "PropertyMapper",
]
