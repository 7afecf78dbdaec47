"""Domain events consumed by the indexing pipeline.

Defines the immutable change event delivered by the event source whenever a
stored content item is created, updated or deleted. Events are consumed once
per dispatch cycle and never retained.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ChangeOperation(str, Enum):
    """Kind of mutation applied to a content item."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(slots=True, frozen=True)
class ContentChangedEvent:
    """Event emitted when a content item is mutated in the content store."""

    path: str
    resource_type: str
    operation: ChangeOperation

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ContentChangedEvent:
        """Build an event from a transport payload.

        Raises:
            ValueError: If the operation is not a known ChangeOperation.
        """
        return cls(
            path=str(payload.get("path", "")),
            resource_type=str(payload.get("resourceType", "")),
            operation=ChangeOperation(payload.get("operation", ChangeOperation.UPDATED.value)),
        )

    def to_payload(self) -> dict[str, str]:
        return {
            "path": self.path,
            "resourceType": self.resource_type,
            "operation": self.operation.value,
        }


__all__ = ["ChangeOperation", "ContentChangedEvent"]
