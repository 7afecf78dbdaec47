"""Ports for publishing content change events to external transports."""

from __future__ import annotations

from abc import ABC, abstractmethod

from packages.core.events import ContentChangedEvent


class ChangeEventPublisher(ABC):
    """Publisher interface for content change events."""

    @abstractmethod
    async def publish(self, event: ContentChangedEvent) -> None:
        """Emit a content change event to downstream consumers."""


__all__ = ["ChangeEventPublisher"]
