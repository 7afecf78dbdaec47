"""Tests for PostgresContentStore with a mocked psycopg2 connection pool."""

from unittest.mock import MagicMock

import psycopg2
import pytest
from psycopg2 import errors as pg_errors
from psycopg2.pool import PoolError

from packages.clients.postgres_content_store import PostgresContentStore
from packages.core.ports.repository_session import AccessDeniedError, StorageError


def _mock_conn() -> MagicMock:
    """Mock psycopg2 connection whose cursor is a context manager."""
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = MagicMock()
    conn.cursor.return_value.__exit__.return_value = False
    return conn


def _cursor(conn: MagicMock) -> MagicMock:
    return conn.cursor.return_value.__enter__.return_value


@pytest.fixture
def mock_conn() -> MagicMock:
    return _mock_conn()


@pytest.fixture
def mock_pool(mock_conn: MagicMock) -> MagicMock:
    """Mock ThreadedConnectionPool handing out ``mock_conn``."""
    pool = MagicMock()
    pool.getconn.return_value = mock_conn
    return pool


class TestPostgresContentStore:
    """Tests for reading content items from PostgreSQL."""

    def test_get_returns_content_with_children(
        self, mock_pool: MagicMock, mock_conn: MagicMock
    ) -> None:
        cursor = _cursor(mock_conn)
        cursor.fetchone.return_value = {
            "path": "/content/doc1",
            "resource_type": "nt:file",
            "properties": {"title": "Report"},
            "readers": ["alice"],
        }
        cursor.fetchall.return_value = [{"path": "/content/doc1/jcr:content"}]

        content = PostgresContentStore(mock_pool).get("/content/doc1")

        assert content.resource_type == "nt:file"
        assert content.get_property("title") == "Report"
        assert content.readers == ["alice"]
        assert content.children == ["jcr:content"]

        child_query_args = cursor.execute.call_args_list[1].args[1]
        assert child_query_args == ("/content/doc1/%", "/content/doc1/%/%")
        mock_pool.putconn.assert_called_once_with(mock_conn)

    def test_get_missing_returns_none(self, mock_pool: MagicMock, mock_conn: MagicMock) -> None:
        cursor = _cursor(mock_conn)
        cursor.fetchone.return_value = None

        assert PostgresContentStore(mock_pool).get("/missing") is None
        cursor.execute.assert_called_once()
        mock_pool.putconn.assert_called_once_with(mock_conn)

    def test_like_wildcards_are_escaped(self, mock_pool: MagicMock, mock_conn: MagicMock) -> None:
        """Test underscores and percents in paths are matched literally."""
        cursor = _cursor(mock_conn)
        cursor.fetchone.return_value = {
            "path": "/my_dir",
            "resource_type": "nt:folder",
            "properties": None,
            "readers": None,
        }
        cursor.fetchall.return_value = []

        content = PostgresContentStore(mock_pool).get("/my_dir")

        assert content.properties == {}
        assert cursor.execute.call_args_list[1].args[1][0] == "/my\\_dir/%"

    def test_get_child_reads_child_path(self, mock_pool: MagicMock, mock_conn: MagicMock) -> None:
        cursor = _cursor(mock_conn)
        cursor.fetchone.return_value = None

        PostgresContentStore(mock_pool).get_child("/content/doc1", "jcr:content")

        assert cursor.execute.call_args.args[1] == ("/content/doc1/jcr:content",)

    def test_permission_error_becomes_access_denied(
        self, mock_pool: MagicMock, mock_conn: MagicMock
    ) -> None:
        _cursor(mock_conn).execute.side_effect = pg_errors.InsufficientPrivilege("denied")

        with pytest.raises(AccessDeniedError):
            PostgresContentStore(mock_pool).get("/secret")
        mock_conn.rollback.assert_called_once()
        mock_pool.putconn.assert_called_once_with(mock_conn)

    def test_database_error_becomes_storage_error(
        self, mock_pool: MagicMock, mock_conn: MagicMock
    ) -> None:
        _cursor(mock_conn).execute.side_effect = psycopg2.OperationalError("connection lost")

        with pytest.raises(StorageError, match="connection lost"):
            PostgresContentStore(mock_pool).get("/content/doc1")
        mock_conn.rollback.assert_called_once()
        mock_pool.putconn.assert_called_once_with(mock_conn)

    def test_each_read_uses_its_own_connection(self) -> None:
        """Test a failed read rolls back only its connection and the next read is unaffected."""
        failing, healthy = _mock_conn(), _mock_conn()
        _cursor(failing).execute.side_effect = psycopg2.OperationalError("statement timeout")
        _cursor(healthy).fetchone.return_value = {
            "path": "/content/doc2",
            "resource_type": "nt:file",
            "properties": {},
            "readers": [],
        }
        _cursor(healthy).fetchall.return_value = []
        pool = MagicMock()
        pool.getconn.side_effect = [failing, healthy]
        store = PostgresContentStore(pool)

        with pytest.raises(StorageError):
            store.get("/content/doc1")
        content = store.get("/content/doc2")

        assert content.path == "/content/doc2"
        failing.rollback.assert_called_once()
        healthy.rollback.assert_not_called()
        assert [c.args[0] for c in pool.putconn.call_args_list] == [failing, healthy]

    def test_pool_checkout_failure_becomes_storage_error(self, mock_pool: MagicMock) -> None:
        mock_pool.getconn.side_effect = PoolError("connection pool exhausted")

        with pytest.raises(StorageError, match="exhausted"):
            PostgresContentStore(mock_pool).get("/content/doc1")
        mock_pool.putconn.assert_not_called()

    def test_from_config_sizes_pool(self, mocker, test_config) -> None:
        pool_cls = mocker.patch("packages.clients.postgres_content_store.ThreadedConnectionPool")

        store = PostgresContentStore.from_config(test_config)

        assert store.pool is pool_cls.return_value
        kwargs = pool_cls.call_args.kwargs
        assert kwargs["minconn"] == test_config.postgres_min_pool_size
        assert kwargs["maxconn"] == test_config.postgres_max_pool_size
        assert kwargs["database"] == test_config.postgres_db
        assert kwargs["password"] == test_config.postgres_password.get_secret_value()

    def test_close(self, mock_pool: MagicMock) -> None:
        PostgresContentStore(mock_pool).close()

        mock_pool.closeall.assert_called_once()
