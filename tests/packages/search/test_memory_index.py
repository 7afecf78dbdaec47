"""Tests for InMemorySearchIndex."""

import pytest

from packages.indexing.paths import term_query
from packages.search.memory_index import InMemorySearchIndex


class TestInMemorySearchIndex:
    """Tests for upserts and delete queries."""

    def test_upsert_replaces_by_id(self) -> None:
        index = InMemorySearchIndex()
        index.upsert_document({"id": "/a", "title": "v1"})
        index.upsert_document({"id": "/a", "title": "v2"})

        assert len(index) == 1
        assert index.get("/a") == {"id": "/a", "title": "v2"}

    def test_upsert_without_id_raises(self) -> None:
        with pytest.raises(ValueError, match="id"):
            InMemorySearchIndex().upsert_document({"title": "orphan"})

    def test_stored_documents_are_copies(self) -> None:
        index = InMemorySearchIndex()
        document = {"id": "/a", "tag": ["x"]}
        index.upsert_document(document)
        document["tag"].append("y")

        assert index.get("/a")["tag"] == ["x"]

    def test_delete_by_quoted_term(self) -> None:
        """Test escaped quoted term queries match the unescaped value."""
        index = InMemorySearchIndex()
        index.upsert_document({"id": "/content/doc1"})
        index.upsert_document({"id": "/content/doc2"})

        index.run_delete_query(term_query("id", "/content/doc1"))

        assert [doc["id"] for doc in index.documents()] == ["/content/doc2"]

    def test_delete_by_bare_term_matches_multi_valued_fields(self) -> None:
        index = InMemorySearchIndex()
        index.upsert_document({"id": "/a", "tag": ["draft", "q3"]})
        index.upsert_document({"id": "/b", "tag": "final"})

        index.run_delete_query("tag:draft")

        assert index.get("/a") is None
        assert index.get("/b") is not None

    def test_delete_all(self) -> None:
        index = InMemorySearchIndex()
        index.upsert_document({"id": "/a"})

        index.run_delete_query("*:*")

        assert len(index) == 0

    def test_unsupported_query_raises(self) -> None:
        with pytest.raises(ValueError, match="Unsupported"):
            InMemorySearchIndex().run_delete_query("id:a OR id:b")

    def test_commit_counts(self) -> None:
        index = InMemorySearchIndex()
        index.commit()
        index.commit()

        assert index.commits == 2
