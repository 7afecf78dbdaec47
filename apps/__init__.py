"""Content indexer application shells.

This package contains thin I/O layers around the indexing pipeline:
- cli: Typer CLI for publishing and locally dispatching change events
- worker: Redis Streams consumer that dispatches events to the search index
"""
