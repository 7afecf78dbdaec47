"""Handlers command for the indexer CLI.

Lists the registrations produced by starting the default handler set.
"""

from rich.console import Console
from rich.table import Table

from packages.common.config import get_config
from packages.indexing.handlers import build_default_handlers, start_handlers
from packages.indexing.registry import HandlerRegistry
from packages.ingest.normalizer import HtmlTextExtractor

console = Console()


def handlers_command() -> None:
    """Print a table of resource type, handler and order."""
    config = get_config()
    registry = HandlerRegistry()
    start_handlers(
        registry,
        build_default_handlers(
            HtmlTextExtractor(config.extraction_encoding),
            content_child=config.content_child_name,
        ),
    )

    table = Table(title="Indexing handlers")
    table.add_column("Resource type", style="cyan")
    table.add_column("Handler")
    table.add_column("Order", justify="right")

    for registration in registry.registrations():
        table.add_row(
            registration.resource_type,
            type(registration.handler).__name__,
            str(registration.order),
        )

    console.print(table)


__all__ = ["handlers_command"]
