"""Keyword search with a TTL cache."""

from playbook.core.search.cache import SearchCache
from playbook.core.search.service import SearchHit, SearchResponse, SearchService

__all__ = ["SearchCache", "SearchHit", "SearchResponse", "SearchService"]
