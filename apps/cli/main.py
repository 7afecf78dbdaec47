"""Module exposing the CLI Typer app under ``apps.cli``."""

from __future__ import annotations

from apps.cli.indexer_cli.main import app

__all__ = ["app"]
