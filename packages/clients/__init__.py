"""Client adapters for external systems.

Heavy dependencies (psycopg2, etc.) belong here, not in packages/common.
"""

from packages.clients.memory_content_store import InMemoryContentStore
from packages.clients.postgres_content_store import PostgresContentStore

__all__ = ["InMemoryContentStore", "PostgresContentStore"]
