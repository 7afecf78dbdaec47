"""Indexer CLI - Typer command-line interface for the content indexing pipeline."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console

from apps.cli.indexer_cli.utils import async_command
from packages.core.events import ChangeOperation

app = typer.Typer(
    name="indexer",
    help="Content Indexer CLI - change-event driven search indexing",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


@app.command(name="publish")
@async_command
async def publish(
    path: str = typer.Argument(..., help="Absolute path of the changed content item"),
    resource_type: str = typer.Option(..., "--type", "-t", help="Resource type of the item"),
    operation: ChangeOperation = typer.Option(
        ChangeOperation.UPDATED, "--operation", "-o", help="Kind of change"
    ),
) -> None:
    """
    Publish a content change event for the indexing worker.

    Examples:
        indexer publish /content/doc1 --type nt:file
        indexer publish /content/doc1 --type nt:file --operation deleted
    """
    from apps.cli.indexer_cli.commands.publish import publish_command

    await publish_command(path, resource_type, operation)


@app.command(name="handlers")
def handlers() -> None:
    """
    List the resource types and handlers of the default handler set.

    Examples:
        indexer handlers
    """
    from apps.cli.indexer_cli.commands.handlers import handlers_command

    handlers_command()


@app.command(name="dispatch")
def dispatch(
    path: str = typer.Argument(..., help="Absolute path of the changed content item"),
    resource_type: str = typer.Option(..., "--type", "-t", help="Resource type of the item"),
    fixture: Path = typer.Option(
        ..., "--fixture", "-f", exists=True, dir_okay=False, help="JSON list of content items"
    ),
    operation: ChangeOperation = typer.Option(
        ChangeOperation.UPDATED, "--operation", "-o", help="Kind of change"
    ),
) -> None:
    """
    Dispatch one change event against a local fixture and print the documents.

    Examples:
        indexer dispatch /content/doc1 --type nt:file --fixture content.json
    """
    from apps.cli.indexer_cli.commands.dispatch import dispatch_command

    dispatch_command(path, resource_type, operation, fixture)


if __name__ == "__main__":
    app()
