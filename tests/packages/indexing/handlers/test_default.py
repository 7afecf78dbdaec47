"""Tests for DefaultResourceTypeHandler."""

from unittest.mock import Mock

from packages.clients.memory_content_store import InMemoryContentStore
from packages.core.events import ChangeOperation, ContentChangedEvent
from packages.core.ports.repository_session import SimpleRepositorySession
from packages.indexing.handlers.default import DefaultResourceTypeHandler, load_content
from packages.schemas.models import Content


def _event(path: str = "/content/doc1", operation=ChangeOperation.UPDATED) -> ContentChangedEvent:
    return ContentChangedEvent(path=path, resource_type="nt:file", operation=operation)


class TestDefaultDocuments:
    """Tests for the baseline document."""

    def test_builds_baseline_fields(self, repository_session, file_content: Content) -> None:
        """Test baseline fields and the source reference are populated."""
        [doc] = DefaultResourceTypeHandler().get_documents(repository_session, _event())

        assert doc.get_field_value("id") == "/content/doc1"
        assert doc.get_field_value("path") == "/content/doc1"
        assert doc.get_field_value("parent") == "/content"
        assert doc.get_field_value("resourceType") == "nt:file"
        assert doc.get_field_values("readers") == ["alice", "everyone"]
        assert doc.get_field_value("title") == "Quarterly report"
        assert doc.get_field_value("_source") == file_content

    def test_item_without_readers_has_no_readers_field(self) -> None:
        doc = DefaultResourceTypeHandler().build_document(Content(path="/a", resource_type="nt:folder"))

        assert "readers" not in doc
        assert doc.get_field_value("parent") == "/"

    def test_missing_content_yields_nothing(self, repository_session) -> None:
        assert DefaultResourceTypeHandler().get_documents(repository_session, _event("/missing")) == []

    def test_deleted_event_yields_no_documents(self, repository_session) -> None:
        handler = DefaultResourceTypeHandler()

        assert handler.get_documents(repository_session, _event(operation=ChangeOperation.DELETED)) == []

    def test_unadaptable_session_yields_nothing(self) -> None:
        """Test a session without a content view is tolerated."""
        assert DefaultResourceTypeHandler().get_documents(SimpleRepositorySession(), _event()) == []

    def test_access_denied_yields_nothing(self) -> None:
        store = InMemoryContentStore(denied=["/content/doc1"])

        assert DefaultResourceTypeHandler().get_documents(SimpleRepositorySession(store), _event()) == []


class TestDefaultDeleteQueries:
    """Tests for delete queries."""

    def test_deleted_event_deletes_by_id(self, repository_session) -> None:
        queries = DefaultResourceTypeHandler().get_delete_queries(
            repository_session, _event(operation=ChangeOperation.DELETED)
        )

        assert queries == ['id:"\\/content\\/doc1"']

    def test_update_has_no_delete_queries(self, repository_session) -> None:
        assert DefaultResourceTypeHandler().get_delete_queries(repository_session, _event()) == []


class TestDefaultLifecycle:
    """Tests for start and stop."""

    def test_start_registers_each_type_once(self) -> None:
        """Test repeated start is idempotent."""
        registry = Mock()
        handler = DefaultResourceTypeHandler(resource_types=["nt:file", "nt:folder"])

        handler.start(registry)
        handler.start(registry)

        assert registry.add_handler.call_count == 2
        registry.add_handler.assert_any_call("nt:folder", handler)

    def test_stop_unregisters(self, registry) -> None:
        handler = DefaultResourceTypeHandler(resource_types=["nt:file"])
        handler.start(registry)

        handler.stop(registry)
        handler.stop(registry)

        assert registry.resolve("nt:file") == ()


def test_load_content_reads_through_session(repository_session, page_content: Content) -> None:
    assert load_content(repository_session, "/pages/home/body") == page_content
    assert load_content(repository_session, "/pages/none") is None
