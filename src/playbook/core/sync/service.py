"""
Atomic multi-file commits to a remote branch.

The remote equivalent of a plumbing commit: blobs are written, a tree is
built from them, a commit is created on top of the current head and the
branch is moved with a non-forced ref update. Until that final update
nothing is visible on the branch, so a failure at any earlier step leaves
the branch exactly as it was.

Steps:
- read the branch head, its commit and (when pruning) its full tree
- write one blob per file, concurrently
- create the tree (overlay on the base tree or a full listing)
- create the commit with the head as its only parent
- fast-forward the branch, reporting a concurrent move as CONFLICT
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from playbook.core.github.models import RepoInfo
from playbook.core.github.protocol import ContentStore
from playbook.core.sync.models import ChangeSet, SyncResult, SyncStatus
from playbook.core.sync.reconciler import TreeReconciler

logger = logging.getLogger(__name__)


class CommitSynchronizer:
    """
    Writes a change set to a branch as exactly one commit.

    Example:
        >>> sync = CommitSynchronizer(client)
        >>> cs = ChangeSet.build({"notes/a.md": "# A"})
        >>> result = sync.sync(repo, "main", cs, "docs: add a")
        >>> result.status
        <SyncStatus.COMMITTED: 'committed'>
    """

    def __init__(
        self,
        store: ContentStore,
        max_workers: int = 4,
        reconciler: TreeReconciler | None = None,
    ) -> None:
        self.store = store
        self.max_workers = max(1, max_workers)
        self.reconciler = reconciler or TreeReconciler()

    def sync(
        self,
        repo: RepoInfo,
        branch: str,
        change_set: ChangeSet,
        message: str,
    ) -> SyncResult:
        """
        Commit ``change_set`` to ``branch``.

        Returns:
            SyncResult with status COMMITTED (branch moved to a new commit),
            UNCHANGED (nothing to write, or the tree came out identical) or
            CONFLICT (the branch moved while the commit was being built)

        Raises:
            InvalidChangeSetError: If the change set fails validation
            NotFoundError: If the branch does not exist
            RemoteFaultError: If any remote call fails
        """
        change_set.validate_paths()

        head_sha = self.store.get_branch_head(repo, branch)
        if change_set.is_empty:
            logger.debug("Empty change set for %s; nothing to commit", branch)
            return self._unchanged(repo, branch, head_sha, change_set)

        head = self.store.get_commit(repo, head_sha)
        base_tree = self.store.get_tree(repo, head.tree_sha, recursive=change_set.prunes_scope)

        blob_shas = self._write_blobs(repo, change_set)
        plan = self.reconciler.reconcile(base_tree, change_set, blob_shas)
        tree_sha = self.store.create_tree(repo, plan.entries, base_tree=plan.base_tree)

        if tree_sha == head.tree_sha:
            logger.info("Tree unchanged on %s; skipping commit", branch)
            return self._unchanged(repo, branch, head_sha, change_set)

        commit = self.store.create_commit(repo, message, tree_sha, head_sha)
        update = self.store.update_ref(repo, branch, commit.sha, force=False)

        if not update.ok:
            logger.warning(
                "Branch %s moved while committing; commit %s left unpublished",
                branch,
                commit.sha[:8],
            )
            return SyncResult(
                status=SyncStatus.CONFLICT,
                branch=branch,
                commit_sha=commit.sha,
                commit_url=commit.html_url,
                paths=change_set.paths,
                message=f"Branch {branch} moved since {head_sha[:8]}; retry from the new head",
            )

        logger.info(
            "Committed %d file(s) to %s/%s (%s)",
            len(change_set.files),
            repo.full_name,
            branch,
            commit.sha[:8],
        )
        return SyncResult(
            status=SyncStatus.COMMITTED,
            branch=branch,
            commit_sha=commit.sha,
            commit_url=commit.html_url or repo.commit_url(commit.sha),
            paths=change_set.paths,
            message=message,
        )

    def _write_blobs(self, repo: RepoInfo, change_set: ChangeSet) -> dict[str, str]:
        if not change_set.files:
            return {}
        workers = min(self.max_workers, len(change_set.files))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                f.path: executor.submit(self.store.create_blob, repo, f.content)
                for f in change_set.files
            }
            # result() re-raises the first failure; the branch is untouched at this point
            return {path: future.result() for path, future in futures.items()}

    @staticmethod
    def _unchanged(
        repo: RepoInfo, branch: str, head_sha: str, change_set: ChangeSet
    ) -> SyncResult:
        return SyncResult(
            status=SyncStatus.UNCHANGED,
            branch=branch,
            commit_sha=head_sha,
            commit_url=repo.commit_url(head_sha),
            paths=change_set.paths,
            message="No changes to commit",
        )
