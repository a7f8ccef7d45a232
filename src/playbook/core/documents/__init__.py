"""Document operations: specs, ADRs, changelogs, runbook, prompts, chat logs."""

from playbook.core.documents.authors import inject_author
from playbook.core.documents.models import ToolResult
from playbook.core.documents.service import DocumentService
from playbook.core.documents.slug import heading_slug, slugify

__all__ = ["DocumentService", "ToolResult", "heading_slug", "inject_author", "slugify"]
