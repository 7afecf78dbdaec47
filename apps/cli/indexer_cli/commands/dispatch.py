"""Dispatch command for the indexer CLI.

Dispatches one change event against content loaded from a JSON fixture and an
in-memory index, then prints the resulting index documents. Useful for
checking what a handler chain produces without Redis or Elasticsearch.
"""

import json
import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from packages.clients.memory_content_store import InMemoryContentStore
from packages.common.config import get_config
from packages.core.errors import IndexWriteError
from packages.core.events import ChangeOperation, ContentChangedEvent
from packages.core.ports.repository_session import SimpleRepositorySession
from packages.core.use_cases.dispatch_event import IndexingDispatcher
from packages.indexing.handlers import build_default_handlers, start_handlers
from packages.indexing.registry import HandlerRegistry
from packages.ingest.normalizer import HtmlTextExtractor
from packages.search.memory_index import InMemorySearchIndex

console = Console()
logger = logging.getLogger(__name__)


def dispatch_command(
    path: str,
    resource_type: str,
    operation: ChangeOperation,
    fixture: Path,
) -> None:
    """Dispatch one event and print the indexed documents.

    Raises:
        typer.Exit: Exit with code 1 if the fixture cannot be loaded or indexing fails.
    """
    try:
        store = InMemoryContentStore.from_json_file(fixture)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]✗ Cannot load fixture {fixture}: {e}[/red]")
        raise typer.Exit(code=1)

    config = get_config()
    registry = HandlerRegistry()
    start_handlers(
        registry,
        build_default_handlers(
            HtmlTextExtractor(config.extraction_encoding),
            content_child=config.content_child_name,
        ),
    )
    index = InMemorySearchIndex()
    dispatcher = IndexingDispatcher(registry=registry, index=index)

    event = ContentChangedEvent(path=path, resource_type=resource_type, operation=operation)
    try:
        result = dispatcher.dispatch(SimpleRepositorySession(store), event)
    except IndexWriteError as e:
        logger.exception(f"Dispatch failed: {e}")
        console.print(f"[red]✗ Dispatch failed: {e}[/red]")
        raise typer.Exit(code=1)

    console.print(
        f"[green]✓ {result.state.value}[/green] "
        f"resource type={result.resource_type} handlers={result.handlers_invoked} "
        f"deletes={result.deletes_applied} documents={result.documents_indexed} "
        f"failures={result.handler_failures}"
    )
    console.print_json(data=index.documents())


__all__ = ["dispatch_command"]
