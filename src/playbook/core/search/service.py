"""
Keyword search over a document repository.

Runs a code search (through the cache), then fetches the bodies of the
top hits concurrently. A failed fetch only degrades its own hit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from pydantic import BaseModel, Field

from playbook.core.exceptions import PlaybookError
from playbook.core.github.client import build_search_query
from playbook.core.github.models import CodeSearchItem, CodeSearchResult, FileContent, RepoInfo
from playbook.core.search.cache import SearchCache

logger = logging.getLogger(__name__)

NO_SNIPPET = "No snippet available"


class SearchBackend(Protocol):
    """The two remote calls a search needs."""

    def search_code(
        self, repo: RepoInfo, keyword: str, qualifiers: Iterable[str] = ()
    ) -> CodeSearchResult: ...

    def get_file(self, repo: RepoInfo, path: str, ref: str) -> FileContent: ...


class SearchHit(BaseModel):
    """One result, with the file body when it could be fetched."""

    path: str
    snippet: str = NO_SNIPPET
    full_content: str | None = None
    url: str = ""
    message: str | None = None

    def to_dict(self) -> dict[str, object]:
        data = self.model_dump()
        if self.message is None:
            data.pop("message")
        return data


class SearchResponse(BaseModel):
    results: list[SearchHit] = Field(default_factory=list)
    total_count: int = 0
    message: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "results": [hit.to_dict() for hit in self.results],
            "total_count": self.total_count,
            "message": self.message,
        }


class SearchService:
    """
    Searches one repository and returns enriched hits.

    Example:
        >>> service = SearchService(client, cache=SearchCache())
        >>> response = service.search(RepoInfo(owner="dwarvesf", repo="runbook"), "incident")
        >>> response.results[0].full_content
    """

    def __init__(
        self,
        backend: SearchBackend,
        cache: SearchCache[CodeSearchResult] | None = None,
        result_limit: int = 5,
        max_workers: int = 4,
    ) -> None:
        self.backend = backend
        self.cache: SearchCache[CodeSearchResult] = cache if cache is not None else SearchCache()
        self.result_limit = result_limit
        self.max_workers = max(1, max_workers)

    def search(
        self,
        repo: RepoInfo,
        keyword: str,
        qualifiers: Iterable[str] = (),
    ) -> SearchResponse:
        """
        Search ``repo`` for ``keyword`` and fetch the top hits' bodies.

        Raises:
            RemoteFaultError: If the search call itself fails
        """
        qualifiers = list(qualifiers)
        found = self.search_code(repo, keyword, qualifiers)
        items = found.items[: self.result_limit]
        hits = self._fetch_all(repo, items)
        return SearchResponse(
            results=hits,
            total_count=found.total_count,
            message=(
                f"Found and processed {len(hits)} results out of {found.total_count} total."
            ),
        )

    def search_code(
        self, repo: RepoInfo, keyword: str, qualifiers: list[str]
    ) -> CodeSearchResult:
        """Code search through the cache."""
        key = SearchCache.key(repo.full_name, build_search_query(keyword, repo, qualifiers))
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        result = self.backend.search_code(repo, keyword, qualifiers)
        self.cache.put(key, result)
        return result

    def _fetch_all(self, repo: RepoInfo, items: list[CodeSearchItem]) -> list[SearchHit]:
        if not items:
            return []
        workers = min(self.max_workers, len(items))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(lambda item: self._fetch_one(repo, item), items))

    def _fetch_one(self, repo: RepoInfo, item: CodeSearchItem) -> SearchHit:
        hit = SearchHit(path=item.path, snippet=item.snippet or NO_SNIPPET, url=item.html_url)
        try:
            content = self.backend.get_file(repo, item.path, item.default_branch)
        except PlaybookError as e:
            logger.warning("Error fetching content for %s: %s", item.path, e)
            return hit.model_copy(update={"message": f"Error fetching content: {e}"})

        if not content.exists or content.content is None:
            logger.warning("Could not fetch full content for %s", item.path)
            return hit.model_copy(update={"message": "Could not fetch full content."})
        return hit.model_copy(update={"full_content": content.content})
