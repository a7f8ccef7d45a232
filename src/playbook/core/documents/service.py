"""
Document operations: the caller-facing surface of playbook.

Each operation validates its arguments, builds a change set and hands it
to the lifecycle manager or the commit synchronizer. Failures come back
as ``ToolResult(status="error")`` rather than exceptions, so an
orchestrating process can log and carry on.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from playbook.core.config.models import PlaybookConfig
from playbook.core.documents.authors import inject_author
from playbook.core.documents.models import (
    CreateAdrArgs,
    CreateChangelogArgs,
    CreateSpecArgs,
    LifecycleOverrides,
    SearchArgs,
    SuggestRunbookArgs,
    SyncPromptArgs,
    ToolResult,
    UploadChatLogsArgs,
)
from playbook.core.documents.slug import heading_slug, slugify, unix_millis
from playbook.core.exceptions import InvalidChangeSetError, PlaybookError
from playbook.core.github.models import RepoInfo
from playbook.core.github.protocol import DocumentBackend
from playbook.core.pr.service import LifecycleManager, WriteStrategy
from playbook.core.projects.inference import ProjectNameInferrer
from playbook.core.search.cache import SearchCache
from playbook.core.search.service import SearchService
from playbook.core.sync.models import ChangeSet, ScopePolicy, SyncResult, SyncStatus
from playbook.core.sync.service import CommitSynchronizer

logger = logging.getLogger(__name__)

PROMPT_SEARCH_QUALIFIERS = ("in:file,path", "-path:synced_prompts")


def _describe(e: Exception) -> str:
    if isinstance(e, ValidationError):
        return "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'args'}: {err['msg']}"
            for err in e.errors()
        )
    return str(e)


class DocumentService:
    """
    Writes and searches playbook documents.

    Example:
        >>> config = load_config()
        >>> with GitHubClient.from_config(config.github) as client:
        ...     service = DocumentService(client, config)
        ...     service.create_spec(spec_name="Auth flow", content="# Auth flow").to_dict()
    """

    def __init__(
        self,
        backend: DocumentBackend,
        config: PlaybookConfig | None = None,
        *,
        search_cache: SearchCache[Any] | None = None,
        inferrer: ProjectNameInferrer | None = None,
    ) -> None:
        self.backend = backend
        self.config = config or PlaybookConfig()
        self.synchronizer = CommitSynchronizer(
            backend, max_workers=self.config.github.max_workers
        )
        self.lifecycle = LifecycleManager(backend, self.synchronizer)
        self.search_service = SearchService(
            backend,
            cache=search_cache
            or SearchCache(
                ttl_seconds=self.config.search.ttl_seconds,
                capacity=self.config.search.capacity,
            ),
            result_limit=self.config.search.result_limit,
            max_workers=self.config.github.max_workers,
        )
        self.inferrer = inferrer or ProjectNameInferrer(
            known_projects=self.config.chat_logs.known_projects
        )
        self._username: str | None = None

    @property
    def username(self) -> str:
        """Login of the token owner, fetched once."""
        if self._username is None:
            self._username = self.backend.get_authenticated_user()
        return self._username

    def _guard(self, action: str, call: Callable[[], ToolResult]) -> ToolResult:
        try:
            return call()
        except (PlaybookError, ValidationError) as e:
            logger.error("Failed to %s: %s", action, _describe(e))
            return ToolResult.error(f"Failed to {action}: {_describe(e)}")

    # ------------------------------------------------------------------
    # Proposals (new branch + PR, or update of an existing PR)
    # ------------------------------------------------------------------

    def create_spec(self, **kwargs: Any) -> ToolResult:
        def run() -> ToolResult:
            args = CreateSpecArgs(**kwargs)
            return self._propose_document(
                kind="spec",
                title_label="spec",
                noun="specification document",
                folder=self.config.docs.specs_path,
                name=args.spec_name,
                content=args.content,
                overrides=args,
            )

        return self._guard("create spec file and open PR", run)

    def create_adr(self, **kwargs: Any) -> ToolResult:
        def run() -> ToolResult:
            args = CreateAdrArgs(**kwargs)
            return self._propose_document(
                kind="adr",
                title_label="ADR",
                noun="architecture decision record",
                folder=self.config.docs.adrs_path,
                name=args.adr_name,
                content=args.content,
                overrides=args,
            )

        return self._guard("create ADR file and open PR", run)

    def create_changelog(self, **kwargs: Any) -> ToolResult:
        def run() -> ToolResult:
            args = CreateChangelogArgs(**kwargs)
            return self._propose_document(
                kind="changelog",
                title_label="changelog",
                noun="changelog entry",
                folder=self.config.docs.changelog_path,
                name=args.changelog_name,
                content=args.entry_content,
                overrides=args,
            )

        return self._guard("create changelog entry and open PR", run)

    def _propose_document(
        self,
        *,
        kind: str,
        title_label: str,
        noun: str,
        folder: str,
        name: str,
        content: str,
        overrides: LifecycleOverrides,
    ) -> ToolResult:
        slug = slugify(name)
        if not slug:
            raise InvalidChangeSetError(f"Name {name!r} has no usable characters for a filename")
        filename = f"{slug}.md"
        path = posixpath.join(folder, filename)
        docs = self.config.docs

        if docs.inject_author:
            content = inject_author(content, self.username)

        default_body = (
            f"This PR suggests a new {noun}:\n\n{content}\n\n"
            "This entry was created using the playbook tool."
        )
        logger.info("Proposing %s %s in %s", kind, path, docs.repo_info.full_name)
        result = self.lifecycle.propose(
            docs.repo_info,
            ChangeSet.build({path: content}),
            base_branch=docs.base_branch,
            branch_name=overrides.branch_name or f"docs/add-{kind}-{slug}",
            commit_message=overrides.commit_message or f"docs: add {kind} {filename}",
            pr_title=overrides.pr_title or f"docs: Add {title_label} {filename}",
            pr_body=overrides.pr_body or default_body,
            pr_number=overrides.pr_number,
        )
        return self._proposal_result(
            result, f"{noun} {filename}", path=path, updated=overrides.pr_number
        )

    def suggest_runbook(self, **kwargs: Any) -> ToolResult:
        def run() -> ToolResult:
            args = SuggestRunbookArgs(**kwargs)
            runbook = self.config.runbook
            if args.target_folder not in runbook.allowed_folders:
                return ToolResult.error(
                    f"Invalid target_folder: {args.target_folder}. "
                    f"Must be one of: {', '.join(runbook.allowed_folders)}"
                )

            slug = (
                slugify(args.filename_slug) if args.filename_slug else None
            ) or heading_slug(args.content) or f"runbook-entry-{unix_millis()}"
            path = posixpath.join(args.target_folder, f"{slug}.md")
            default_body = (
                f"This PR suggests a new runbook entry for the `{args.target_folder}` folder.\n\n"
                "Please review the suggested content and merge if appropriate."
            )
            result = self.lifecycle.propose(
                runbook.repo_info,
                ChangeSet.build({path: args.content}),
                base_branch=runbook.base_branch,
                branch_name=args.branch_name or f"suggest-runbook-{unix_millis()}",
                commit_message=args.commit_message or f"Add/update runbook entry: {slug}",
                pr_title=args.pr_title or f"feat: Add runbook entry for {slug}",
                pr_body=args.pr_body or default_body,
                pr_number=args.pr_number,
                strategy=WriteStrategy.SINGLE_FILE,
            )
            return self._proposal_result(
                result, f"runbook entry {slug}", path=path, updated=args.pr_number
            )

        return self._guard("suggest runbook entry", run)

    @staticmethod
    def _proposal_result(
        result: SyncResult, what: str, *, path: str, updated: int | None
    ) -> ToolResult:
        if result.status == SyncStatus.CONFLICT:
            return ToolResult.error(
                f"Conflict writing {what}: {result.message}",
                path=path,
                commit_sha=result.commit_sha,
            )
        if updated is not None:
            verb = "updated" if result.status == SyncStatus.COMMITTED else "left unchanged"
            message = f"Successfully {verb} {what} on PR #{result.pr_number}"
        else:
            message = f"Successfully created {what} and opened PR #{result.pr_number}"
        return ToolResult.success(
            message,
            pr_number=result.pr_number,
            pr_url=result.pr_url,
            path=path,
            commit_sha=result.commit_sha,
            commit_url=result.commit_url,
        )

    # ------------------------------------------------------------------
    # Direct commits to a base branch
    # ------------------------------------------------------------------

    def sync_prompt(self, **kwargs: Any) -> ToolResult:
        def run() -> ToolResult:
            args = SyncPromptArgs(**kwargs)
            prompts = self.config.prompts
            repo = prompts.repo_info
            branch = prompts.base_branch
            scope = posixpath.join(prompts.folder, args.project_name)
            path = posixpath.join(scope, f"{args.prompt_name}.md")
            name = f"{args.project_name}/{args.prompt_name}"

            existed = self.backend.get_file(repo, path, branch).exists
            change_set = ChangeSet.build(
                {path: args.prompt_content},
                scope_prefix=scope,
                policy=ScopePolicy.REPLACE if prompts.prune_stale else ScopePolicy.UPSERT,
            )
            message = f"sync: update prompt {name}" if existed else f"sync: add new prompt {name}"
            result = self.synchronizer.sync(repo, branch, change_set, message)

            if result.status == SyncStatus.CONFLICT:
                return ToolResult.error(f"Conflict syncing prompt {name}: {result.message}")
            if result.status == SyncStatus.UNCHANGED:
                summary = f"Prompt {name} is already up to date"
            elif existed:
                summary = f"Successfully updated prompt {name}"
            else:
                summary = f"Successfully synced prompt {name}"
            return ToolResult.success(
                summary,
                path=path,
                github_url=repo.blob_url(branch, path),
                commit_sha=result.commit_sha,
                commit_url=result.commit_url,
            )

        return self._guard("sync prompt", run)

    def upload_chat_logs(self, **kwargs: Any) -> ToolResult:
        def run() -> ToolResult:
            args = UploadChatLogsArgs(**kwargs)
            chat = self.config.chat_logs
            project_dir = args.project_dir.expanduser().resolve()
            try:
                files = self._read_chat_files(project_dir / chat.local_dir, chat.extensions)
            except OSError as e:
                logger.error("Cannot read local chat logs: %s", e)
                return ToolResult.error(f"Failed to sync chat logs: cannot read local files: {e}")
            if not files:
                return ToolResult.success("No chat log files found locally to sync.")

            user = args.user_id or self.username
            project = self.inferrer.infer(args.candidate_paths or [str(project_dir)])
            remote_dir = posixpath.join(chat.root, project, user, ".chat")
            change_set = ChangeSet.build(
                {posixpath.join(remote_dir, name): data for name, data in files.items()},
                scope_prefix=remote_dir,
                policy=ScopePolicy.REPLACE,
            )
            repo = chat.repo_info
            result = self.synchronizer.sync(
                repo,
                chat.base_branch,
                change_set,
                f"sync: merge chat logs from {project} for {user}",
            )

            if result.status == SyncStatus.CONFLICT:
                return ToolResult.error(f"Conflict syncing chat logs: {result.message}")
            if result.status == SyncStatus.UNCHANGED:
                summary = f"Chat logs already up to date on {chat.base_branch}."
            else:
                summary = f"Chat log sync complete. Committed changes to {chat.base_branch}."
            return ToolResult.success(
                summary,
                path=remote_dir,
                commit_sha=result.commit_sha,
                commit_url=result.commit_url,
            )

        return self._guard("sync chat logs", run)

    @staticmethod
    def _read_chat_files(chat_dir: Path, extensions: list[str]) -> dict[str, bytes]:
        """Raw bytes of each chat log file, by file name. Content is never decoded."""
        if not chat_dir.is_dir():
            logger.debug("No chat directory at %s", chat_dir)
            return {}
        paths = sorted(
            p for p in chat_dir.iterdir() if p.is_file() and p.suffix in extensions
        )
        return {p.name: p.read_bytes() for p in paths}

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search_runbook(self, **kwargs: Any) -> ToolResult:
        return self._search("runbook search", self.config.runbook.repo_info, (), kwargs)

    def search_prompts(self, **kwargs: Any) -> ToolResult:
        return self._search(
            "prompt search", self.config.prompts.repo_info, PROMPT_SEARCH_QUALIFIERS, kwargs
        )

    def _search(
        self,
        label: str,
        repo: RepoInfo,
        qualifiers: tuple[str, ...],
        kwargs: dict[str, Any],
    ) -> ToolResult:
        try:
            args = SearchArgs(**kwargs)
            response = self.search_service.search(repo, args.keyword, qualifiers)
        except (PlaybookError, ValidationError) as e:
            logger.error("Error during %s: %s", label, _describe(e))
            return ToolResult.error(
                f"An error occurred during {label}: {_describe(e)}", results=[]
            )
        return ToolResult.success(
            response.message,
            results=[hit.to_dict() for hit in response.results],
            total_count=response.total_count,
        )
