"""Data models for the content indexer.

Defines the read-only content view handed to indexing handlers by the storage
layer and the multi-valued document handed to the search index.
"""

from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ========== Content ==========


class Content(BaseModel):
    """A stored content item as seen by indexing handlers.

    Attributes:
        path: Absolute location of the item in the content store.
        resource_type: Type tag used as the handler dispatch key.
        properties: Property name to value mapping (values may be bytes for binary bodies).
        readers: Principals allowed to read the item.
        children: Names of the item's direct children.
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1)
    resource_type: str = Field(..., min_length=1)
    properties: dict[str, Any] = Field(default_factory=dict)
    readers: list[str] = Field(default_factory=list)
    children: list[str] = Field(default_factory=list)

    @field_validator("path")
    @classmethod
    def _validate_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("path must be absolute")
        return value

    def get_property(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)

    def has_child(self, name: str) -> bool:
        return name in self.children


# ========== Index Document ==========


class IndexDocument:
    """Field/value record representing one indexable unit.

    Every field can hold one or many values; ``add_field`` accumulates and
    ``set_field`` replaces. Values are kept in insertion order.

    Example:
        >>> doc = IndexDocument()
        >>> doc.add_field("readers", ["alice", "bob"])
        >>> doc.get_field_values("readers")
        ['alice', 'bob']
    """

    __slots__ = ("_fields",)

    def __init__(self, fields: dict[str, Any] | None = None) -> None:
        self._fields: dict[str, list[Any]] = {}
        for name, value in (fields or {}).items():
            self.add_field(name, value)

    def add_field(self, name: str, value: Any) -> None:
        values = self._fields.setdefault(name, [])
        if isinstance(value, (list, tuple)):
            values.extend(value)
        else:
            values.append(value)

    def set_field(self, name: str, value: Any) -> None:
        self._fields.pop(name, None)
        self.add_field(name, value)

    def get_field_value(self, name: str) -> Any:
        values = self._fields.get(name)
        return values[0] if values else None

    def get_field_values(self, name: str) -> list[Any]:
        return list(self._fields.get(name, []))

    def remove_field(self, name: str) -> None:
        self._fields.pop(name, None)

    def field_names(self) -> list[str]:
        return list(self._fields)

    def to_dict(self) -> dict[str, Any]:
        """Collapse single-valued fields to scalars, keep multi-valued as lists."""
        return {
            name: values[0] if len(values) == 1 else list(values)
            for name, values in self._fields.items()
        }

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"IndexDocument({self._fields!r})"


__all__ = ["Content", "IndexDocument"]
