"""
Pytest configuration and shared fixtures.

Provides an in-memory, content-addressed stand-in for the GitHub git
database so the sync engine, lifecycle manager and document service can
be exercised without a network.
"""

from __future__ import annotations

import base64
import hashlib
from collections.abc import Callable, Iterable, Sequence
from typing import Any

import pytest

from playbook.core.config import clear_cache
from playbook.core.exceptions import ConflictError, NotFoundError, RemoteFaultError
from playbook.core.github.models import (
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


def _sha(*parts: str | bytes) -> str:
    digest = hashlib.sha1()
    for part in parts:
        digest.update(part if isinstance(part, bytes) else part.encode("utf-8"))
        digest.update(b"\0")
    return digest.hexdigest()


class InMemoryContentStore:
    """
    Content-addressed fake of the remote store.

    Trees are kept as flat ``path -> blob sha`` maps; recursive listings
    synthesize the directory entries a real listing carries. Ref updates
    enforce fast-forward, create-tree refuses directory entries (the engine
    must never send them) and every call is recorded in ``calls``.
    """

    def __init__(self, username: str = "octocat") -> None:
        self.username = username
        self.blobs: dict[str, bytes] = {}
        self.trees: dict[str, dict[str, str]] = {}
        self.commits: dict[str, CommitNode] = {}
        self.refs: dict[tuple[str, str], str] = {}
        self.pulls: dict[tuple[str, int], PullRequest] = {}
        self.search_results: dict[str, CodeSearchResult] = {}
        self.calls: list[str] = []
        self.fail_on: dict[str, Exception] = {}
        self.truncate_trees = False
        self.before_update_ref: Callable[[], None] | None = None
        self._next_pr = 1

    # -- helpers -----------------------------------------------------------

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise self.fail_on[name]

    def _store_tree(self, mapping: dict[str, str]) -> str:
        sha = _sha("tree", *[f"{p}={s}" for p, s in sorted(mapping.items())])
        self.trees[sha] = dict(mapping)
        return sha

    def seed(self, repo: RepoInfo, branch: str, files: dict[str, str]) -> str:
        """Point ``branch`` at a root commit holding exactly ``files``."""
        mapping = {}
        for path, content in files.items():
            blob = _sha("blob", content)
            self.blobs[blob] = content.encode("utf-8")
            mapping[path] = blob
        tree = self._store_tree(mapping)
        sha = _sha("commit", tree, "seed", branch)
        self.commits[sha] = CommitNode(sha=sha, tree_sha=tree, parent_shas=[], message="seed")
        self.refs[(repo.full_name, branch)] = sha
        return sha

    def head(self, repo: RepoInfo, branch: str) -> str:
        return self.refs[(repo.full_name, branch)]

    def files(self, repo: RepoInfo, branch: str) -> dict[str, str]:
        """Current content of every file on ``branch``."""
        tree = self.trees[self.commits[self.head(repo, branch)].tree_sha]
        return {path: self.blobs[sha].decode("utf-8") for path, sha in tree.items()}

    def count(self, name: str) -> int:
        return self.calls.count(name)

    def _is_ancestor(self, ancestor: str, sha: str) -> bool:
        pending = [sha]
        while pending:
            current = pending.pop()
            if current == ancestor:
                return True
            commit = self.commits.get(current)
            if commit:
                pending.extend(commit.parent_shas)
        return False

    # -- ContentStore ------------------------------------------------------

    def get_branch_head(self, repo: RepoInfo, branch: str) -> str:
        self._record("get_branch_head")
        try:
            return self.refs[(repo.full_name, branch)]
        except KeyError:
            raise NotFoundError(f"get ref: branch {branch} not found") from None

    def get_commit(self, repo: RepoInfo, sha: str) -> CommitNode:
        self._record("get_commit")
        if sha not in self.commits:
            raise NotFoundError(f"get commit: {sha} not found")
        return self.commits[sha]

    def get_tree(self, repo: RepoInfo, sha: str, recursive: bool = False) -> TreeNode:
        self._record("get_tree")
        mapping = self.trees[sha]
        entries: list[TreeEntry] = []
        dirs: set[str] = set()
        for path, blob in sorted(mapping.items()):
            parts = path.split("/")
            for i in range(1, len(parts)):
                dirs.add("/".join(parts[:i]))
            if recursive or len(parts) == 1:
                entries.append(TreeEntry(path=path, sha=blob))
        for directory in sorted(dirs):
            if recursive or "/" not in directory:
                entries.append(
                    TreeEntry(
                        path=directory,
                        mode=EntryMode.SUBTREE,
                        type=ObjectType.TREE,
                        sha=_sha("dir", sha, directory),
                    )
                )
        return TreeNode(sha=sha, entries=entries, truncated=recursive and self.truncate_trees)

    def create_blob(self, repo: RepoInfo, content: str | bytes) -> str:
        self._record("create_blob")
        data = content if isinstance(content, bytes) else content.encode("utf-8")
        sha = _sha("blob", data)
        self.blobs[sha] = data
        return sha

    def create_tree(
        self,
        repo: RepoInfo,
        entries: Sequence[TreeEntry],
        base_tree: str | None = None,
    ) -> str:
        self._record("create_tree")
        mapping = dict(self.trees[base_tree]) if base_tree else {}
        for entry in entries:
            if entry.type == ObjectType.TREE:
                raise RemoteFaultError("directory entries are not accepted", status_code=422)
            if entry.sha not in self.blobs:
                raise RemoteFaultError(f"unknown blob {entry.sha}", status_code=422)
            mapping[entry.path] = entry.sha
        return self._store_tree(mapping)

    def create_commit(
        self,
        repo: RepoInfo,
        message: str,
        tree_sha: str,
        parent_sha: str,
    ) -> CommitNode:
        self._record("create_commit")
        sha = _sha("commit", tree_sha, parent_sha, message)
        commit = CommitNode(
            sha=sha,
            tree_sha=tree_sha,
            parent_shas=[parent_sha],
            message=message,
            html_url=repo.commit_url(sha),
        )
        self.commits[sha] = commit
        return commit

    def update_ref(
        self,
        repo: RepoInfo,
        branch: str,
        sha: str,
        force: bool = False,
    ) -> RefUpdate:
        self._record("update_ref")
        if self.before_update_ref is not None:
            self.before_update_ref()
        key = (repo.full_name, branch)
        if key not in self.refs:
            raise NotFoundError(f"update ref: branch {branch} not found")
        if not force and not self._is_ancestor(self.refs[key], sha):
            return RefUpdate(
                status=RefUpdateStatus.CONFLICT,
                branch=branch,
                sha=sha,
                detail="Update is not a fast forward",
            )
        self.refs[key] = sha
        return RefUpdate(status=RefUpdateStatus.UPDATED, branch=branch, sha=sha)

    def create_branch(self, repo: RepoInfo, new_branch: str, from_branch: str) -> str:
        self._record("create_branch")
        head = self.refs.get((repo.full_name, from_branch))
        if head is None:
            raise NotFoundError(f"get ref: branch {from_branch} not found")
        if (repo.full_name, new_branch) in self.refs:
            raise RemoteFaultError(
                "create branch failed", status_code=422, body="Reference already exists"
            )
        self.refs[(repo.full_name, new_branch)] = head
        return head

    def get_file(self, repo: RepoInfo, path: str, ref: str) -> FileContent:
        self._record("get_file")
        head = self.refs.get((repo.full_name, ref))
        if head is None:
            return FileContent.missing(path)
        blob = self.trees[self.commits[head].tree_sha].get(path)
        if blob is None:
            return FileContent.missing(path)
        return FileContent(
            path=path,
            exists=True,
            sha=blob,
            content=self.blobs[blob].decode("utf-8"),
            html_url=repo.blob_url(ref, path),
        )

    def put_file(
        self,
        repo: RepoInfo,
        path: str,
        content: str,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> CommitNode:
        self._record("put_file")
        key = (repo.full_name, branch)
        if key not in self.refs:
            raise NotFoundError(f"put content: branch {branch} not found")
        head = self.commits[self.refs[key]]
        current = self.trees[head.tree_sha].get(path)
        if current is not None and current != sha:
            raise ConflictError(f"File {path} changed on {branch} since it was read")
        blob = _sha("blob", content.encode("utf-8"))
        self.blobs[blob] = content.encode("utf-8")
        mapping = dict(self.trees[head.tree_sha])
        mapping[path] = blob
        tree = self._store_tree(mapping)
        commit_sha = _sha("commit", tree, head.sha, message)
        commit = CommitNode(
            sha=commit_sha,
            tree_sha=tree,
            parent_shas=[head.sha],
            message=message,
            html_url=repo.commit_url(commit_sha),
        )
        self.commits[commit_sha] = commit
        self.refs[key] = commit_sha
        return commit

    def create_pull_request(
        self,
        repo: RepoInfo,
        title: str,
        head: str,
        base: str,
        body: str = "",
        draft: bool = False,
    ) -> PullRequest:
        self._record("create_pull_request")
        number = self._next_pr
        self._next_pr += 1
        pr = PullRequest(
            number=number,
            title=title,
            body=body,
            head_ref=head,
            base_ref=base,
            html_url=repo.pull_url(number),
        )
        self.pulls[(repo.full_name, number)] = pr
        return pr

    def get_pull_request(self, repo: RepoInfo, number: int) -> PullRequest:
        self._record("get_pull_request")
        try:
            return self.pulls[(repo.full_name, number)]
        except KeyError:
            raise NotFoundError(f"get pull request: #{number} not found") from None

    # -- search and identity -----------------------------------------------

    def search_code(
        self, repo: RepoInfo, keyword: str, qualifiers: Iterable[str] = ()
    ) -> CodeSearchResult:
        self._record("search_code")
        return self.search_results.get(keyword, CodeSearchResult())

    def get_authenticated_user(self) -> str:
        self._record("get_authenticated_user")
        return self.username


def github_file_payload(path: str, content: str, sha: str = "abc123") -> dict[str, Any]:
    """A get-content response body for a file."""
    return {
        "type": "file",
        "path": path,
        "sha": sha,
        "encoding": "base64",
        "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
        "html_url": f"https://github.com/acme/docs/blob/main/{path}",
    }


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def repo() -> RepoInfo:
    return RepoInfo(owner="acme", repo="docs")


@pytest.fixture
def store() -> InMemoryContentStore:
    return InMemoryContentStore()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's real config, .env files and token out of every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for var in (
        "GITHUB_PERSONAL_ACCESS_TOKEN",
        "PLAYBOOK_GITHUB_API_URL",
        "PLAYBOOK_SEARCH_TTL",
        "PLAYBOOK_PROMPTS_PRUNE_STALE",
    ):
        monkeypatch.delenv(var, raising=False)
    clear_cache()
    yield
    clear_cache()
