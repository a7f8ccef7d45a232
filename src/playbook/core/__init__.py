"""Core services for playbook (remote store access, sync, lifecycle, search)."""
