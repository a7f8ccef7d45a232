"""
Playbook - document sync for AI agents.

Persists specs, ADRs, changelog entries, runbook suggestions, prompts and
chat logs into GitHub repositories as single atomic commits, and searches
them back.
"""

__version__ = "0.3.0"

from playbook.core.sync.models import ChangeSet, FileUpsert, SyncResult, SyncStatus

__all__ = ["ChangeSet", "FileUpsert", "SyncResult", "SyncStatus", "__version__"]
