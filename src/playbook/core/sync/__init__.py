"""
Atomic multi-file commits to GitHub branches.

A ChangeSet goes in, one commit (or none) comes out.
"""

from playbook.core.sync.models import (
    ChangeSet,
    FileUpsert,
    ScopePolicy,
    SyncResult,
    SyncStatus,
    normalize_repo_path,
)
from playbook.core.sync.reconciler import TreePlan, TreeReconciler
from playbook.core.sync.service import CommitSynchronizer

__all__ = [
    "ChangeSet",
    "CommitSynchronizer",
    "FileUpsert",
    "ScopePolicy",
    "SyncResult",
    "SyncStatus",
    "TreePlan",
    "TreeReconciler",
    "normalize_repo_path",
]
