"""Shared pytest fixtures for the content indexer test suite.

Provides an in-memory content store seeded with a file, a page body and a
folder, plus the registry, index and extractor the pipeline is wired with.
"""

import os
from typing import Any

import pytest

from packages.clients.memory_content_store import InMemoryContentStore
from packages.common.config import IndexerConfig
from packages.core.ports.repository_session import SimpleRepositorySession
from packages.indexing.registry import HandlerRegistry
from packages.ingest.normalizer import HtmlTextExtractor
from packages.schemas.models import Content
from packages.search.memory_index import InMemorySearchIndex

# ========== Test Environment Setup ==========


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables before any tests run."""
    os.environ.setdefault("REDIS_URL", "redis://localhost:6379")
    os.environ.setdefault("ELASTICSEARCH_URL", "http://localhost:9200")
    os.environ.setdefault("POSTGRES_PASSWORD", "test")

    yield


# ========== Configuration Fixtures ==========


@pytest.fixture
def test_config() -> IndexerConfig:
    """Provide test configuration with test service URLs."""
    return IndexerConfig(
        redis_url="redis://test-cache:6379",
        elasticsearch_url="http://test-search:9200",
        elasticsearch_index="test-content",
        elasticsearch_api_key=None,
        elasticsearch_timeout=30,
        postgres_host="test-db",
        log_level="DEBUG",
    )


# ========== Content Fixtures ==========


@pytest.fixture
def file_content() -> Content:
    return Content(
        path="/content/doc1",
        resource_type="nt:file",
        properties={"title": "Quarterly report", "sakai:tags": ["finance", "q3"]},
        readers=["alice", "everyone"],
        children=["jcr:content"],
    )


@pytest.fixture
def file_content_child() -> Content:
    return Content(
        path="/content/doc1/jcr:content",
        resource_type="nt:resource",
        properties={
            "jcr:mimeType": "text/html",
            "jcr:encoding": "utf-8",
            "jcr:data": b"<p>Revenue grew</p>",
            "jcr:uuid": "a1b2",
        },
    )


@pytest.fixture
def page_content() -> Content:
    return Content(
        path="/pages/home/body",
        resource_type="sakai/pagecontent",
        properties={"sakai:pagecontent": "<h1>Welcome</h1><p>Hello <b>world</b></p>"},
        readers=["everyone"],
    )


@pytest.fixture
def content_store(
    file_content: Content,
    file_content_child: Content,
    page_content: Content,
) -> InMemoryContentStore:
    return InMemoryContentStore(
        [
            file_content,
            file_content_child,
            page_content,
            Content(path="/content", resource_type="nt:folder"),
        ]
    )


@pytest.fixture
def repository_session(content_store: InMemoryContentStore) -> SimpleRepositorySession:
    return SimpleRepositorySession(content_store)


# ========== Pipeline Fixtures ==========


@pytest.fixture
def registry() -> HandlerRegistry:
    return HandlerRegistry()


@pytest.fixture
def search_index() -> InMemorySearchIndex:
    return InMemorySearchIndex()


@pytest.fixture
def extractor() -> HtmlTextExtractor:
    return HtmlTextExtractor()


@pytest.fixture
def mock_es_client(mocker: Any) -> Any:
    """Mocked Elasticsearch client instance."""
    return mocker.MagicMock()
