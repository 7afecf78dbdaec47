"""Indexing handlers and the default handler set.

Usage::

    from packages.indexing.handlers import build_default_handlers, start_handlers
    from packages.indexing.registry import get_registry

    handlers = build_default_handlers(HtmlTextExtractor())
    start_handlers(get_registry(), handlers)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from packages.core.ports.indexing_handler import HandlerLifecycle
from packages.core.ports.text_extractor import TextExtractor
from packages.indexing.handlers.default import DefaultResourceTypeHandler, load_content
from packages.indexing.handlers.file import (
    CONTENT_CHILD,
    FILE_RESOURCE_TYPE,
    FileResourceTypeHandler,
)
from packages.indexing.handlers.page_content import (
    PAGE_CONTENT_RESOURCE_TYPE,
    PageContentIndexingHandler,
)
from packages.indexing.registry import HandlerRegistry

logger = logging.getLogger(__name__)

DEFAULT_RESOURCE_TYPES: tuple[str, ...] = (
    FILE_RESOURCE_TYPE,
    "nt:folder",
    PAGE_CONTENT_RESOURCE_TYPE,
)


def build_default_handlers(
    extractor: TextExtractor,
    *,
    content_child: str = CONTENT_CHILD,
    resource_types: Iterable[str] = DEFAULT_RESOURCE_TYPES,
) -> list[HandlerLifecycle]:
    """Wire the default, file and page-content handlers by composition.

    The default handler comes first so it is registered, and therefore
    invoked, before the handlers that enrich its output.
    """
    default = DefaultResourceTypeHandler(resource_types=resource_types)
    return [
        default,
        FileResourceTypeHandler(default, extractor=extractor, content_child=content_child),
        PageContentIndexingHandler(default, extractor),
    ]


def start_handlers(registry: HandlerRegistry, handlers: Sequence[HandlerLifecycle]) -> None:
    for handler in handlers:
        handler.start(registry)
    logger.info("Started %d indexing handlers", len(handlers))


def stop_handlers(registry: HandlerRegistry, handlers: Sequence[HandlerLifecycle]) -> None:
    for handler in reversed(handlers):
        handler.stop(registry)
    logger.info("Stopped %d indexing handlers", len(handlers))


__all__ = [
    "DEFAULT_RESOURCE_TYPES",
    "DefaultResourceTypeHandler",
    "FileResourceTypeHandler",
    "PageContentIndexingHandler",
    "build_default_handlers",
    "load_content",
    "start_handlers",
    "stop_handlers",
]
