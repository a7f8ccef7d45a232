"""
Tree reconciliation: turn a base tree plus new blobs into the entry list
for the next tree.

Two shapes come out of ``reconcile``:

- Overlay: only the new entries, to be written on top of ``base_tree``.
  Every path the change set does not list is inherited unchanged.
- Full listing: every surviving blob from a recursive listing of the base
  tree plus the new entries, to be written with no ``base_tree``. Used
  when a scope is replaced, because entries omitted from an overlay are
  kept, never removed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pydantic import BaseModel, Field

from playbook.core.exceptions import RemoteFaultError
from playbook.core.github.models import EntryMode, ObjectType, TreeEntry, TreeNode
from playbook.core.sync.models import ChangeSet

logger = logging.getLogger(__name__)


class TreePlan(BaseModel):
    """Entries for the create-tree call and whether they stack on the base tree."""

    entries: list[TreeEntry] = Field(default_factory=list)
    base_tree: str | None = None
    pruned: list[str] = Field(default_factory=list)


def in_scope(path: str, prefix: str) -> bool:
    """True when ``path`` lies strictly under directory ``prefix``."""
    return path.startswith(f"{prefix.rstrip('/')}/")


class TreeReconciler:
    """Builds tree entry lists from a base snapshot and a change set."""

    def reconcile(
        self,
        base: TreeNode,
        change_set: ChangeSet,
        blob_shas: Mapping[str, str],
    ) -> TreePlan:
        """
        Plan the next tree.

        Args:
            base: Tree of the current head; must be a recursive listing
                when the change set prunes its scope
            change_set: Files being written
            blob_shas: Blob id for every path in the change set

        Raises:
            RemoteFaultError: If pruning is required and the base listing
                was truncated by the remote
            KeyError: If a change set path has no blob id
        """
        new_entries = [
            TreeEntry(path=path, mode=EntryMode.FILE, type=ObjectType.BLOB, sha=blob_shas[path])
            for path in change_set.paths
        ]

        prefix = change_set.scope_prefix
        if prefix is None or not change_set.prunes_scope:
            return TreePlan(entries=self.merge([], new_entries), base_tree=base.sha)

        if base.truncated:
            raise RemoteFaultError(
                "Tree listing was truncated; refusing to rebuild a partial tree",
                tree_sha=base.sha,
            )

        kept, pruned = self.prune(base.entries, prefix)
        keep_paths = set(change_set.paths)
        pruned = [p for p in pruned if p not in keep_paths]
        if pruned:
            logger.debug("Dropping %d stale entries under %s", len(pruned), prefix)
        return TreePlan(entries=self.merge(kept, new_entries), base_tree=None, pruned=pruned)

    @staticmethod
    def prune(entries: list[TreeEntry], prefix: str) -> tuple[list[TreeEntry], list[str]]:
        """
        Split a recursive listing into entries kept outside ``prefix`` and
        the paths dropped inside it.

        Directory entries are always dropped: a create-tree call without a
        base tree rebuilds directories from the nested paths of what it is
        given, and an explicit directory entry would resurrect its old
        contents.
        """
        kept: list[TreeEntry] = []
        dropped: list[str] = []
        for entry in entries:
            if entry.type == ObjectType.TREE:
                continue
            if in_scope(entry.path, prefix):
                dropped.append(entry.path)
            else:
                kept.append(entry)
        return kept, dropped

    @staticmethod
    def merge(existing: list[TreeEntry], new: list[TreeEntry]) -> list[TreeEntry]:
        """Union of two entry lists by path, ``new`` winning on collision."""
        merged: dict[str, TreeEntry] = {entry.path: entry for entry in existing}
        for entry in new:
            merged[entry.path] = entry
        return list(merged.values())
