"""
Change-request lifecycle for synchronized writes.

Decides per call whether a change set goes onto a fresh branch with a new
pull request, or onto the head branch of a pull request the caller names.
Exactly one of those happens in a single call; an existing pull request
is only ever advanced, never re-opened.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import PurePosixPath

from playbook.core.exceptions import InvalidChangeSetError
from playbook.core.github.models import RepoInfo
from playbook.core.github.protocol import ContentStore
from playbook.core.sync.models import ChangeSet, SyncResult, SyncStatus
from playbook.core.sync.service import CommitSynchronizer

logger = logging.getLogger(__name__)


class WriteStrategy(str, Enum):
    """
    How the change set reaches the branch.

    TREE builds one commit from blobs and a tree and may carry any number
    of files. SINGLE_FILE uses the content API (look up the file's id, then
    one create-or-update call) and accepts exactly one file.
    """

    TREE = "tree"
    SINGLE_FILE = "single_file"


def derive_branch_name(change_set: ChangeSet, prefix: str = "playbook") -> str:
    """
    Branch name for a change set when the caller gives none.

    Example:
        >>> derive_branch_name(ChangeSet.build({"docs/specs/Auth Flow.md": "x"}))
        'playbook/auth-flow'
    """
    if change_set.is_empty:
        raise InvalidChangeSetError("Cannot derive a branch name from an empty change set")
    stem = PurePosixPath(change_set.paths[0]).stem
    slug = re.sub(r"[^a-z0-9]+", "-", stem.lower()).strip("-") or "update"
    return f"{prefix}/{slug}"


class LifecycleManager:
    """
    Runs a change set through the NEW or EXISTING pull request path.

    Example:
        >>> manager = LifecycleManager(client)
        >>> result = manager.propose(
        ...     repo, cs, base_branch="main", commit_message="docs: add", pr_title="Add"
        ... )
        >>> result.pr_number
        42
    """

    def __init__(
        self,
        store: ContentStore,
        synchronizer: CommitSynchronizer | None = None,
    ) -> None:
        self.store = store
        self.synchronizer = synchronizer or CommitSynchronizer(store)

    def propose(
        self,
        repo: RepoInfo,
        change_set: ChangeSet,
        *,
        base_branch: str,
        commit_message: str,
        pr_title: str,
        pr_body: str = "",
        branch_name: str | None = None,
        pr_number: int | None = None,
        strategy: WriteStrategy = WriteStrategy.TREE,
    ) -> SyncResult:
        """
        Write ``change_set`` and make sure a pull request carries it.

        Without ``pr_number`` a branch is created from ``base_branch``, the
        change set is committed to it and a new pull request is opened.
        With ``pr_number`` the change set is committed to that request's
        head branch and the request is left as it is.

        Returns:
            SyncResult with pr_number and pr_url set, except on CONFLICT
            from the NEW path, where no pull request is opened

        Raises:
            InvalidChangeSetError: If the change set is empty, produces no
                change on a new branch, or has more than one file on the
                single-file path
            NotFoundError: If the base branch or the pull request is missing
            ConflictError: If the single-file path finds the file moved
            RemoteFaultError: If any remote call fails
        """
        change_set.validate_paths()
        if change_set.is_empty:
            raise InvalidChangeSetError("Nothing to propose: change set is empty")
        if strategy == WriteStrategy.SINGLE_FILE and len(change_set.files) != 1:
            raise InvalidChangeSetError(
                "Single-file writes take exactly one file; use the tree strategy "
                "for multi-file changes",
                paths=change_set.paths,
            )

        if pr_number is not None:
            return self._update_existing(repo, change_set, pr_number, commit_message, strategy)
        return self._open_new(
            repo,
            change_set,
            base_branch=base_branch,
            branch_name=branch_name or derive_branch_name(change_set),
            commit_message=commit_message,
            pr_title=pr_title,
            pr_body=pr_body,
            strategy=strategy,
        )

    def _open_new(
        self,
        repo: RepoInfo,
        change_set: ChangeSet,
        *,
        base_branch: str,
        branch_name: str,
        commit_message: str,
        pr_title: str,
        pr_body: str,
        strategy: WriteStrategy,
    ) -> SyncResult:
        self.store.create_branch(repo, branch_name, base_branch)
        result = self._write(repo, branch_name, change_set, commit_message, strategy)

        if result.status == SyncStatus.CONFLICT:
            return result
        if result.status == SyncStatus.UNCHANGED:
            raise InvalidChangeSetError(
                f"Nothing to propose: {', '.join(change_set.paths)} already match {base_branch}",
                branch=branch_name,
            )

        pr = self.store.create_pull_request(
            repo, title=pr_title, head=branch_name, base=base_branch, body=pr_body
        )
        return result.model_copy(
            update={"pr_number": pr.number, "pr_url": pr.html_url or repo.pull_url(pr.number)}
        )

    def _update_existing(
        self,
        repo: RepoInfo,
        change_set: ChangeSet,
        pr_number: int,
        commit_message: str,
        strategy: WriteStrategy,
    ) -> SyncResult:
        pr = self.store.get_pull_request(repo, pr_number)
        logger.info("Updating PR #%d on branch %s", pr.number, pr.head_ref)
        result = self._write(repo, pr.head_ref, change_set, commit_message, strategy)
        return result.model_copy(
            update={"pr_number": pr_number, "pr_url": repo.pull_url(pr_number)}
        )

    def _write(
        self,
        repo: RepoInfo,
        branch: str,
        change_set: ChangeSet,
        message: str,
        strategy: WriteStrategy,
    ) -> SyncResult:
        if strategy == WriteStrategy.SINGLE_FILE:
            return self.write_single_file(repo, branch, change_set, message)
        return self.synchronizer.sync(repo, branch, change_set, message)

    def write_single_file(
        self,
        repo: RepoInfo,
        branch: str,
        change_set: ChangeSet,
        message: str,
    ) -> SyncResult:
        """
        Create or overwrite one file through the content API.

        Looks up the file first so an overwrite carries the id the remote
        requires. Not atomic across files, hence the one-file limit.
        """
        if len(change_set.files) != 1:
            raise InvalidChangeSetError(
                "Single-file writes take exactly one file", paths=change_set.paths
            )
        upsert = change_set.files[0]
        content = upsert.content
        if isinstance(content, bytes):
            content = content.decode("utf-8")

        existing = self.store.get_file(repo, upsert.path, branch)
        if existing.exists and existing.content == content:
            head_sha = self.store.get_branch_head(repo, branch)
            return SyncResult(
                status=SyncStatus.UNCHANGED,
                branch=branch,
                commit_sha=head_sha,
                commit_url=repo.commit_url(head_sha),
                paths=[upsert.path],
                message="No changes to commit",
            )

        commit = self.store.put_file(
            repo,
            upsert.path,
            content,
            message,
            branch,
            sha=existing.sha if existing.exists else None,
        )
        return SyncResult(
            status=SyncStatus.COMMITTED,
            branch=branch,
            commit_sha=commit.sha,
            commit_url=commit.html_url or repo.commit_url(commit.sha),
            paths=[upsert.path],
            message=message,
        )
