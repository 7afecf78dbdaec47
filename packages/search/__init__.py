"""Search index adapters implementing the SearchIndex port."""

from packages.search.memory_index import InMemorySearchIndex

__all__ = ["InMemorySearchIndex"]
