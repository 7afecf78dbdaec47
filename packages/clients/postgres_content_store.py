"""PostgreSQL implementation of the ContentSession port.

Read-only access to content items stored in ``content.items``::

    CREATE TABLE content.items (
        path          TEXT PRIMARY KEY,
        resource_type TEXT NOT NULL,
        properties    JSONB NOT NULL DEFAULT '{}',
        readers       TEXT[] NOT NULL DEFAULT '{}'
    );

Every read checks out its own connection from a ``ThreadedConnectionPool``,
so concurrent dispatch threads never share a connection or a transaction.
"""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import psycopg2
from psycopg2 import errors as pg_errors
from psycopg2.extensions import connection as PgConnection  # noqa: N812
from psycopg2.extras import RealDictCursor
from psycopg2.pool import ThreadedConnectionPool

from packages.common.config import IndexerConfig
from packages.common.logging import get_logger
from packages.core.ports.repository_session import AccessDeniedError, StorageError
from packages.indexing.paths import child_path
from packages.schemas.models import Content

logger = get_logger(__name__)

_SELECT_ITEM = """
    SELECT path, resource_type, properties, readers
    FROM content.items
    WHERE path = %s
"""

_SELECT_CHILD_NAMES = """
    SELECT path FROM content.items
    WHERE path LIKE %s AND path NOT LIKE %s
    ORDER BY path
"""


class PostgresContentStore:
    """PostgreSQL implementation of ContentSession.

    Database errors are wrapped in StorageError; permission errors raised by
    the database become AccessDeniedError.

    Example:
        >>> store = PostgresContentStore.from_config(config)
        >>> store.get("/content/doc1")
        >>> store.close()
    """

    def __init__(self, pool: ThreadedConnectionPool) -> None:
        """Initialize with a PostgreSQL connection pool.

        Args:
            pool: Thread-safe psycopg2 pool; one connection is used per read.
        """
        self.pool = pool
        logger.info("Initialized PostgresContentStore")

    @classmethod
    def from_config(cls, config: IndexerConfig) -> "PostgresContentStore":
        """Create a store backed by a new pool sized from configuration.

        Raises:
            StorageError: If the pool cannot be created.
        """
        try:
            pool = ThreadedConnectionPool(
                minconn=config.postgres_min_pool_size,
                maxconn=config.postgres_max_pool_size,
                host=config.postgres_host,
                port=config.postgres_port,
                database=config.postgres_db,
                user=config.postgres_user,
                password=config.postgres_password.get_secret_value(),
            )
        except psycopg2.Error as e:
            logger.exception(
                "Failed to initialize PostgreSQL connection pool",
                extra={"host": config.postgres_host, "error": str(e)},
            )
            raise StorageError(f"Failed to initialize PostgreSQL pool: {e}") from e

        logger.info(
            "PostgreSQL connection pool initialized",
            extra={
                "host": config.postgres_host,
                "database": config.postgres_db,
                "max_pool_size": config.postgres_max_pool_size,
            },
        )
        return cls(pool)

    @contextmanager
    def _connection(self) -> Generator[PgConnection, None, None]:
        try:
            conn = self.pool.getconn()
        except psycopg2.Error as e:
            raise StorageError(f"Failed to get connection from pool: {e}") from e

        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        finally:
            self.pool.putconn(conn)

    def get(self, path: str) -> Content | None:
        """Fetch one content item with the names of its direct children."""
        try:
            with self._connection() as conn, conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(_SELECT_ITEM, (path,))
                row = cur.fetchone()
                if row is None:
                    return None

                prefix = _escape_like(path.rstrip("/")) + "/"
                cur.execute(_SELECT_CHILD_NAMES, (prefix + "%", prefix + "%/%"))
                children = [r["path"].rsplit("/", 1)[-1] for r in cur.fetchall()]
        except pg_errors.InsufficientPrivilege as e:
            raise AccessDeniedError(f"Access denied to {path}") from e
        except psycopg2.Error as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

        return _row_to_content(row, children)

    def get_child(self, path: str, name: str) -> Content | None:
        return self.get(child_path(path, name))

    def close(self) -> None:
        self.pool.closeall()
        logger.info("Closed PostgresContentStore connection pool")


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_content(row: dict[str, Any], children: list[str]) -> Content:
    return Content(
        path=row["path"],
        resource_type=row["resource_type"],
        properties=row["properties"] or {},
        readers=list(row["readers"] or []),
        children=children,
    )


__all__ = ["PostgresContentStore"]
