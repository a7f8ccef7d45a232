"""Pull request lifecycle for synchronized writes."""

from playbook.core.pr.service import LifecycleManager, WriteStrategy, derive_branch_name

__all__ = ["LifecycleManager", "WriteStrategy", "derive_branch_name"]
