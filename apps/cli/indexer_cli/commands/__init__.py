"""Command implementations for the indexer CLI."""

from apps.cli.indexer_cli.commands.dispatch import dispatch_command
from apps.cli.indexer_cli.commands.handlers import handlers_command
from apps.cli.indexer_cli.commands.publish import publish_command

__all__ = ["dispatch_command", "handlers_command", "publish_command"]
