"""Publish command for the indexer CLI.

Publishes a content change event to the configured Redis Stream so the
indexing worker picks it up.
"""

import logging

import typer
from rich.console import Console

from packages.common.config import get_config
from packages.core.events import ChangeOperation, ContentChangedEvent
from packages.ingest.adapters.redis_streams_publisher import (
    RedisChangeEventPublisher,
    create_redis_client,
)

console = Console()
logger = logging.getLogger(__name__)


async def publish_command(path: str, resource_type: str, operation: ChangeOperation) -> None:
    """Publish one change event.

    Raises:
        typer.Exit: Exit with code 1 if the path is blank or publishing fails.
    """
    if not path.strip():
        console.print("[red]✗ Path cannot be blank[/red]")
        raise typer.Exit(code=1)

    config = get_config()
    event = ContentChangedEvent(path=path, resource_type=resource_type, operation=operation)

    try:
        redis_client = await create_redis_client(config.redis_url)
        try:
            publisher = RedisChangeEventPublisher(
                redis_client,
                config.change_events_stream,
                maxlen=config.change_events_maxlen,
            )
            await publisher.publish(event)
        finally:
            await redis_client.aclose()
    except Exception as e:
        logger.exception(f"Publishing change event failed: {e}")
        console.print(f"[red]✗ Publishing failed: {e}[/red]")
        raise typer.Exit(code=1)

    console.print(
        f"[green]✓ Published {operation.value} event for {path} "
        f"to {config.change_events_stream}[/green]"
    )


__all__ = ["publish_command"]
