"""
Data models for the commit synchronizer.

Defines the change set a producer hands to the engine and the result the
engine hands back.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from playbook.core.exceptions import InvalidChangeSetError


def normalize_repo_path(path: str) -> str:
    """
    Validate and normalize a repository-relative POSIX path.

    Strips surrounding whitespace and a single trailing slash; rejects
    anything that is empty, absolute, uses backslashes or contains empty,
    ``.`` or ``..`` segments.

    Raises:
        InvalidChangeSetError: If the path is not a clean relative path
    """
    cleaned = path.strip()
    if cleaned.endswith("/"):
        cleaned = cleaned[:-1]
    if not cleaned:
        raise InvalidChangeSetError("Path must not be empty", path=path)
    if cleaned.startswith("/"):
        raise InvalidChangeSetError(f"Path must be relative: {path}", path=path)
    if "\\" in cleaned:
        raise InvalidChangeSetError(f"Path must use '/' separators: {path}", path=path)
    for segment in cleaned.split("/"):
        if segment in ("", ".", ".."):
            raise InvalidChangeSetError(f"Invalid path segment in {path!r}", path=path)
    return cleaned


class ScopePolicy(str, Enum):
    """
    What a scope prefix means for files already under it.

    UPSERT only constrains where the change set may write; REPLACE also
    drops every existing file under the prefix that the change set does
    not list.
    """

    UPSERT = "upsert"
    REPLACE = "replace"


class FileUpsert(BaseModel):
    """One file to add or overwrite."""

    model_config = ConfigDict(frozen=True)

    path: str
    content: str | bytes


class ChangeSet(BaseModel):
    """
    The set of files one sync call writes.

    Paths given at construction must be unique; ``upsert`` on an existing
    path replaces the earlier content (last write wins).

    Example:
        >>> cs = ChangeSet.build({"docs/adr/0002.md": "# ADR"}, scope_prefix="docs/adr")
        >>> cs.paths
        ['docs/adr/0002.md']
    """

    scope_prefix: str | None = Field(
        default=None,
        description="Directory the change set is confined to",
    )
    policy: ScopePolicy = Field(
        default=ScopePolicy.REPLACE,
        description="Whether stale files under scope_prefix are removed",
    )
    files: list[FileUpsert] = Field(default_factory=list)

    @classmethod
    def build(
        cls,
        files: dict[str, str | bytes] | list[tuple[str, str | bytes]],
        scope_prefix: str | None = None,
        policy: ScopePolicy = ScopePolicy.REPLACE,
    ) -> ChangeSet:
        items = files.items() if isinstance(files, dict) else files
        change_set = cls(
            scope_prefix=scope_prefix,
            policy=policy,
            files=[FileUpsert(path=path, content=content) for path, content in items],
        )
        change_set.validate_paths()
        return change_set

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    @property
    def is_empty(self) -> bool:
        return not self.files

    @property
    def prunes_scope(self) -> bool:
        """True when the reconciler must drop stale entries under the prefix."""
        return self.scope_prefix is not None and self.policy == ScopePolicy.REPLACE

    def upsert(self, path: str, content: str | bytes) -> None:
        """Add a file, replacing any earlier upsert of the same path."""
        path = self._checked(path)
        self.files = [f for f in self.files if f.path != path]
        self.files.append(FileUpsert(path=path, content=content))

    def validate_paths(self) -> None:
        """
        Normalize every path and enforce the change set invariants.

        Raises:
            InvalidChangeSetError: On a bad path, a path outside the scope
                prefix, or the same path listed twice
        """
        if self.scope_prefix is not None:
            self.scope_prefix = normalize_repo_path(self.scope_prefix)

        seen: set[str] = set()
        normalized: list[FileUpsert] = []
        for item in self.files:
            path = self._checked(item.path)
            if path in seen:
                raise InvalidChangeSetError(f"Duplicate path in change set: {path}", path=path)
            seen.add(path)
            normalized.append(item if path == item.path else FileUpsert(path=path, content=item.content))
        self.files = normalized

    def _checked(self, path: str) -> str:
        path = normalize_repo_path(path)
        if self.scope_prefix is not None and not path.startswith(f"{self.scope_prefix}/"):
            raise InvalidChangeSetError(
                f"Path {path} is outside scope prefix {self.scope_prefix}",
                path=path,
                scope_prefix=self.scope_prefix,
            )
        return path


class SyncStatus(str, Enum):
    """Outcome of one synchronization call."""

    COMMITTED = "committed"
    UNCHANGED = "unchanged"
    CONFLICT = "conflict"


class SyncResult(BaseModel):
    """
    Result of a sync (or a lifecycle call built on one).

    ``commit_sha`` is the new head on COMMITTED, the untouched head on
    UNCHANGED, and the commit that could not be published on CONFLICT.
    """

    status: SyncStatus
    branch: str
    commit_sha: str
    commit_url: str | None = None
    pr_number: int | None = None
    pr_url: str | None = None
    paths: list[str] = Field(default_factory=list)
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status != SyncStatus.CONFLICT

    def summary(self) -> str:
        """Generate a human-readable summary of the result."""
        parts = [f"{self.status.value} on {self.branch}", f"commit {self.commit_sha[:8]}"]
        if self.pr_number is not None:
            parts.append(f"PR #{self.pr_number}")
        if self.message:
            parts.append(self.message)
        return ", ".join(parts)
