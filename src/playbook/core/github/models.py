"""
GitHub data models for playbook.

Defines Pydantic models for the repository handle and for the git
database objects (trees, commits, refs), content API files, pull requests
and code search hits exchanged with the GitHub REST API.
"""

from __future__ import annotations

import base64
import binascii
import re
from enum import Enum
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, computed_field


class RepoInfo(BaseModel):
    """
    GitHub repository information.

    Immutable for the lifetime of a client or service that holds it.

    Example:
        >>> RepoInfo.from_full_name("dwarvesf/runbook").url
        'https://github.com/dwarvesf/runbook'
        >>> RepoInfo.from_remote_url("git@github.com:user/repo.git").full_name
        'user/repo'
    """

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1, description="Repository owner (user or organization)")
    repo: str = Field(..., min_length=1, description="Repository name")

    @computed_field
    @property
    def full_name(self) -> str:
        """Full repository name (owner/repo)."""
        return f"{self.owner}/{self.repo}"

    @computed_field
    @property
    def url(self) -> str:
        """GitHub URL for the repository."""
        return f"https://github.com/{self.owner}/{self.repo}"

    def commit_url(self, sha: str) -> str:
        """Get URL for a specific commit."""
        return f"{self.url}/commit/{sha}"

    def pull_url(self, number: int) -> str:
        """Get URL for a specific pull request."""
        return f"{self.url}/pull/{number}"

    def blob_url(self, branch: str, path: str) -> str:
        """Get URL for a file on a branch."""
        return f"{self.url}/blob/{branch}/{quote(path)}"

    @classmethod
    def from_full_name(cls, full_name: str) -> RepoInfo:
        """
        Parse an ``owner/repo`` string.

        Raises:
            ValueError: If the string is not of the form owner/repo
        """
        owner, sep, repo = full_name.strip().partition("/")
        if not sep or not owner or not repo or "/" in repo:
            raise ValueError(f"Expected 'owner/repo', got: {full_name!r}")
        return cls(owner=owner, repo=repo)

    @classmethod
    def from_remote_url(cls, remote_url: str) -> RepoInfo | None:
        """
        Parse repository info from a git remote URL.

        Handles formats:
        - git@github.com:user/repo.git
        - https://github.com/user/repo(.git)

        Returns:
            RepoInfo or None if not a valid GitHub URL
        """
        if not remote_url:
            return None

        ssh_match = re.match(r"git@github\.com:([^/]+)/([^/]+?)(?:\.git)?$", remote_url)
        if ssh_match:
            return cls(owner=ssh_match.group(1), repo=ssh_match.group(2))

        https_match = re.match(r"https?://github\.com/([^/]+)/([^/]+?)(?:\.git)?/?$", remote_url)
        if https_match:
            return cls(owner=https_match.group(1), repo=https_match.group(2))

        return None


class EntryMode(str, Enum):
    """File modes accepted by the git trees API."""

    FILE = "100644"
    EXECUTABLE = "100755"
    SUBTREE = "040000"
    SUBMODULE = "160000"
    SYMLINK = "120000"


class ObjectType(str, Enum):
    """Kinds of object a tree entry can point at."""

    BLOB = "blob"
    TREE = "tree"
    COMMIT = "commit"


class TreeEntry(BaseModel):
    """
    One path's binding inside a tree.

    Paths are relative, POSIX-separated and case-sensitive. When a tree is
    listed recursively, nested paths are full paths from the root.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    mode: EntryMode = EntryMode.FILE
    type: ObjectType = ObjectType.BLOB
    sha: str

    def to_api(self) -> dict[str, str]:
        """Serialize as an item of the create-tree payload."""
        return {
            "path": self.path,
            "mode": self.mode.value,
            "type": self.type.value,
            "sha": self.sha,
        }

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> TreeEntry:
        mode = str(data.get("mode", EntryMode.FILE.value))
        # The API reports directories as "040000" but some payloads drop the leading zero
        if mode == "40000":
            mode = EntryMode.SUBTREE.value
        return cls(
            path=str(data["path"]),
            mode=EntryMode(mode),
            type=ObjectType(str(data.get("type", ObjectType.BLOB.value))),
            sha=str(data["sha"]),
        )


class TreeNode(BaseModel):
    """A directory snapshot: id plus the entries it lists."""

    sha: str
    entries: list[TreeEntry] = Field(default_factory=list)
    truncated: bool = Field(
        default=False,
        description="True when the remote cut a recursive listing short",
    )

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> TreeNode:
        items = data.get("tree") or []
        return cls(
            sha=str(data["sha"]),
            entries=[TreeEntry.from_api(item) for item in items if isinstance(item, dict)],
            truncated=bool(data.get("truncated", False)),
        )


class CommitNode(BaseModel):
    """A point-in-time snapshot: tree id plus parents."""

    sha: str
    tree_sha: str
    parent_shas: list[str] = Field(default_factory=list)
    message: str = ""
    html_url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CommitNode:
        tree = data.get("tree") or {}
        parents = data.get("parents") or []
        return cls(
            sha=str(data["sha"]),
            tree_sha=str(tree.get("sha", "")),
            parent_shas=[str(p["sha"]) for p in parents if isinstance(p, dict) and "sha" in p],
            message=str(data.get("message") or ""),
            html_url=data.get("html_url"),
        )


class RefUpdateStatus(str, Enum):
    """Outcome of a non-forced ref update."""

    UPDATED = "updated"
    CONFLICT = "conflict"


class RefUpdate(BaseModel):
    """
    Tagged result of moving a branch pointer.

    A CONFLICT means the branch moved since its head was read; nothing was
    changed remotely and the caller may retry from a fresh head.
    """

    status: RefUpdateStatus
    branch: str
    sha: str = Field(description="Commit the ref points at after the call (requested sha on success)")
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status == RefUpdateStatus.UPDATED


class FileContent(BaseModel):
    """
    Result of a single-file lookup on the content API.

    ``exists`` is False when the path is absent on the ref; ``sha`` is the
    blob id the content API needs to permit an overwrite.
    """

    path: str
    exists: bool
    sha: str | None = None
    content: str | None = None
    html_url: str | None = None

    @classmethod
    def missing(cls, path: str) -> FileContent:
        return cls(path=path, exists=False)

    @classmethod
    def from_api(cls, path: str, data: Any) -> FileContent:
        """
        Build from a get-content payload.

        A directory listing (a JSON array) or a non-file entry counts as
        "no file here".
        """
        if not isinstance(data, dict) or data.get("type") != "file":
            return cls.missing(path)

        content: str | None = None
        raw = data.get("content")
        if isinstance(raw, str) and data.get("encoding", "base64") == "base64":
            try:
                content = base64.b64decode(raw).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError):
                content = None
        elif isinstance(raw, str):
            content = raw

        return cls(
            path=str(data.get("path") or path),
            exists=True,
            sha=data.get("sha"),
            content=content,
            html_url=data.get("html_url"),
        )


class PullRequest(BaseModel):
    """A change request from a head branch into a base branch."""

    number: int
    title: str = ""
    body: str = ""
    state: str = "open"
    head_ref: str
    base_ref: str
    html_url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PullRequest:
        head = data.get("head") or {}
        base = data.get("base") or {}
        return cls(
            number=int(data["number"]),
            title=str(data.get("title") or ""),
            body=str(data.get("body") or ""),
            state=str(data.get("state") or "open"),
            head_ref=str(head.get("ref", "")),
            base_ref=str(base.get("ref", "")),
            html_url=str(data.get("html_url") or ""),
        )


class CodeSearchItem(BaseModel):
    """One code search hit."""

    path: str
    html_url: str = ""
    default_branch: str = "main"
    snippet: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CodeSearchItem:
        repository = data.get("repository") or {}
        matches = data.get("text_matches") or []
        snippet = None
        if matches and isinstance(matches[0], dict):
            snippet = matches[0].get("fragment")
        return cls(
            path=str(data["path"]),
            html_url=str(data.get("html_url") or ""),
            default_branch=str(repository.get("default_branch") or "main"),
            snippet=snippet,
        )


class CodeSearchResult(BaseModel):
    """A page of code search hits plus the remote's total count."""

    total_count: int = 0
    items: list[CodeSearchItem] = Field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CodeSearchResult:
        items = data.get("items") or []
        return cls(
            total_count=int(data.get("total_count") or 0),
            items=[CodeSearchItem.from_api(item) for item in items if isinstance(item, dict)],
        )
