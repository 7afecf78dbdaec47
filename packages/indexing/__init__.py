"""Content indexing: handler registry, handlers and document helpers."""

from packages.indexing.registry import HandlerRegistry, get_registry

__all__ = ["HandlerRegistry", "get_registry"]
