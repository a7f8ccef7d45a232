"""
GitHub integration for playbook.

Provides the REST client and the data models for the git database,
content, pull request and search APIs.
"""

from playbook.core.github.client import GitHubClient, build_search_query
from playbook.core.github.models import (
    CodeSearchItem,
    CodeSearchResult,
    CommitNode,
    EntryMode,
    FileContent,
    ObjectType,
    PullRequest,
    RefUpdate,
    RefUpdateStatus,
    RepoInfo,
    TreeEntry,
    TreeNode,
)
from playbook.core.github.protocol import ContentStore, DocumentBackend

__all__ = [
    "CodeSearchItem",
    "CodeSearchResult",
    "CommitNode",
    "ContentStore",
    "DocumentBackend",
    "EntryMode",
    "FileContent",
    "GitHubClient",
    "ObjectType",
    "PullRequest",
    "RefUpdate",
    "RefUpdateStatus",
    "RepoInfo",
    "TreeEntry",
    "TreeNode",
    "build_search_query",
]
