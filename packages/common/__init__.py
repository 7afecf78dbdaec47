"""Common utilities for the content indexer.

This package provides reusable utilities like logging, config, tracing
and retry helpers.
"""

from packages.common.config import IndexerConfig, get_config

__all__ = ["IndexerConfig", "get_config"]
