"""Copy-on-write registry mapping resource types to indexing handlers.

Writers serialize on a lock, build a fresh immutable snapshot and publish it
with a single attribute assignment. Readers never take the lock and always
iterate one complete snapshot, so a registration racing with an in-flight
dispatch is either fully visible or not visible at all.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from functools import lru_cache
from threading import Lock
from types import MappingProxyType
from typing import Mapping

from packages.core.ports.indexing_handler import IndexingHandler

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class HandlerRegistration:
    """A handler registered for one resource type."""

    resource_type: str
    handler: IndexingHandler
    order: int
    sequence: int


class HandlerRegistry:
    """Registry of indexing handlers keyed by resource type.

    Handlers for one type are resolved in ascending ``order``; handlers with
    the same order keep their registration sequence.

    Example:
        >>> registry = HandlerRegistry()
        >>> registry.add_handler("nt:file", file_handler)
        >>> registry.resolve("nt:file")
        (<FileResourceTypeHandler ...>,)
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._sequence = itertools.count()
        self._registrations: Mapping[str, tuple[HandlerRegistration, ...]] = MappingProxyType({})
        self._handlers: Mapping[str, tuple[IndexingHandler, ...]] = MappingProxyType({})

    def add_handler(self, resource_type: str, handler: IndexingHandler, order: int = 0) -> None:
        """Register ``handler`` for ``resource_type``.

        Registering the same handler instance twice for one type is a no-op.

        Raises:
            ValueError: If resource_type is blank.
        """
        if not resource_type or not resource_type.strip():
            raise ValueError("resource_type cannot be blank")

        with self._lock:
            current = self._registrations.get(resource_type, ())
            if any(reg.handler is handler for reg in current):
                logger.debug(
                    "Handler already registered",
                    extra={"resource_type": resource_type, "handler": type(handler).__name__},
                )
                return

            registration = HandlerRegistration(
                resource_type=resource_type,
                handler=handler,
                order=order,
                sequence=next(self._sequence),
            )
            updated = sorted((*current, registration), key=lambda r: (r.order, r.sequence))
            self._publish({**self._registrations, resource_type: tuple(updated)})

        logger.info(
            "Registered indexing handler",
            extra={"resource_type": resource_type, "handler": type(handler).__name__, "order": order},
        )

    def remove_handler(self, resource_type: str, handler: IndexingHandler) -> None:
        """Remove the registration of ``handler`` for ``resource_type`` if present."""
        with self._lock:
            current = self._registrations.get(resource_type)
            if not current or not any(reg.handler is handler for reg in current):
                return

            remaining = tuple(reg for reg in current if reg.handler is not handler)
            updated = dict(self._registrations)
            if remaining:
                updated[resource_type] = remaining
            else:
                del updated[resource_type]
            self._publish(updated)

        logger.info(
            "Removed indexing handler",
            extra={"resource_type": resource_type, "handler": type(handler).__name__},
        )

    def resolve(self, resource_type: str) -> tuple[IndexingHandler, ...]:
        """Return the current handler snapshot for ``resource_type`` (empty when none)."""
        return self._handlers.get(resource_type, ())

    def resource_types(self) -> list[str]:
        return sorted(self._handlers)

    def registrations(self) -> list[HandlerRegistration]:
        """Flatten the current snapshot for listing, grouped by resource type."""
        snapshot = self._registrations
        return [reg for resource_type in sorted(snapshot) for reg in snapshot[resource_type]]

    def _publish(self, registrations: dict[str, tuple[HandlerRegistration, ...]]) -> None:
        # Caller holds the lock. Handlers are derived before either mapping is swapped in.
        handlers = {
            resource_type: tuple(reg.handler for reg in regs)
            for resource_type, regs in registrations.items()
        }
        self._registrations = MappingProxyType(registrations)
        self._handlers = MappingProxyType(handlers)


@lru_cache(maxsize=1)
def get_registry() -> HandlerRegistry:
    """Return the process-wide handler registry."""
    return HandlerRegistry()


__all__ = ["HandlerRegistration", "HandlerRegistry", "get_registry"]
