"""
Protocol for the content-addressable store behind the sync engine.

The commit synchronizer and the lifecycle manager depend on this protocol
rather than on ``GitHubClient`` directly, so tests can swap in an
in-memory store.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol, runtime_checkable

from playbook.core.github.models import (
    CodeSearchResult,
    CommitNode,
    FileContent,
    PullRequest,
    RefUpdate,
    RepoInfo,
    TreeEntry,
    TreeNode,
)


@runtime_checkable
class ContentStore(Protocol):
    """
    Primitive operations against one or more remote repositories.

    Each method maps 1:1 to a remote capability. None of them retries;
    retry policy belongs to the caller.
    """

    def get_branch_head(self, repo: RepoInfo, branch: str) -> str:
        """Return the head commit id of ``branch``. Raises NotFoundError if absent."""
        ...

    def get_commit(self, repo: RepoInfo, sha: str) -> CommitNode:
        """Return the commit with its tree id and parents."""
        ...

    def get_tree(self, repo: RepoInfo, sha: str, recursive: bool = False) -> TreeNode:
        """Return a tree; recursive listings contain full paths from the root."""
        ...

    def create_blob(self, repo: RepoInfo, content: str | bytes) -> str:
        """Store content and return its content-derived blob id."""
        ...

    def create_tree(
        self,
        repo: RepoInfo,
        entries: Sequence[TreeEntry],
        base_tree: str | None = None,
    ) -> str:
        """Create a tree; entries not listed are inherited from ``base_tree`` when given."""
        ...

    def create_commit(
        self,
        repo: RepoInfo,
        message: str,
        tree_sha: str,
        parent_sha: str,
    ) -> CommitNode:
        """Create a single-parent commit."""
        ...

    def update_ref(
        self,
        repo: RepoInfo,
        branch: str,
        sha: str,
        force: bool = False,
    ) -> RefUpdate:
        """Move a branch; a non-forced move that is not a fast-forward reports CONFLICT."""
        ...

    def create_branch(self, repo: RepoInfo, new_branch: str, from_branch: str) -> str:
        """Create ``new_branch`` at the current head of ``from_branch``; return that head."""
        ...

    def get_file(self, repo: RepoInfo, path: str, ref: str) -> FileContent:
        """Look up one file; absence is ``exists=False``, never an exception."""
        ...

    def put_file(
        self,
        repo: RepoInfo,
        path: str,
        content: str,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> CommitNode:
        """Create or overwrite one file in a single commit."""
        ...

    def create_pull_request(
        self,
        repo: RepoInfo,
        title: str,
        head: str,
        base: str,
        body: str = "",
        draft: bool = False,
    ) -> PullRequest:
        """Open a pull request from ``head`` into ``base``."""
        ...

    def get_pull_request(self, repo: RepoInfo, number: int) -> PullRequest:
        """Look up a pull request. Raises NotFoundError if absent."""
        ...


@runtime_checkable
class DocumentBackend(ContentStore, Protocol):
    """A content store that can also search code and name its user."""

    def search_code(
        self,
        repo: RepoInfo,
        keyword: str,
        qualifiers: Iterable[str] = (),
    ) -> CodeSearchResult: ...

    def get_authenticated_user(self) -> str: ...
