"""
GitHub REST client for playbook.

Talks to the git database API (refs, commits, trees, blobs), the content
API, pull requests, code search and the authenticated user over httpx.
Every call is a single request: nothing here retries.

Status mapping:
    404                      -> NotFoundError
    409 on ref/content write -> RefUpdate(CONFLICT) / ConflictError
    other non-2xx            -> RemoteFaultError (status code and body kept)
    transport failure        -> RemoteFaultError (status code None)
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Iterable, Sequence
from types import TracebackType
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from playbook.core.exceptions import ConflictError, NotFoundError, RemoteFaultError
from playbook.core.github.models import (
    CodeSearchResult,
    CommitNode,
    FileContent,
    PullRequest,
    RefUpdate,
    RefUpdateStatus,
    RepoInfo,
    TreeEntry,
    TreeNode,
)

if TYPE_CHECKING:
    from playbook.core.config.models import GitHubConfig

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
TEXT_MATCH_MEDIA_TYPE = "application/vnd.github.text-match+json"


def build_search_query(keyword: str, repo: RepoInfo, qualifiers: Iterable[str] = ()) -> str:
    """
    Build a code search query scoped to one repository.

    A multi-word keyword matches either the exact phrase or all of the
    words (the search API ANDs bare words).

    Example:
        >>> build_search_query("retry budget", RepoInfo(owner="o", repo="r"))
        '"retry budget" OR retry budget repo:o/r'
    """
    keyword = keyword.strip()
    query = f'"{keyword}" OR {keyword}' if " " in keyword else keyword
    parts = [query, *[q for q in qualifiers if q], f"repo:{repo.full_name}"]
    return " ".join(parts)


class GitHubClient:
    """
    Client for GitHub operations over the REST API.

    Authenticated with a bearer token read once at construction time.
    Implements the ``ContentStore`` protocol plus code search and user
    lookup.

    Example:
        >>> with GitHubClient(token) as client:
        ...     head = client.get_branch_head(RepoInfo(owner="o", repo="r"), "main")
    """

    def __init__(
        self,
        token: str | None,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        user_agent: str = "playbook",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize GitHubClient.

        Args:
            token: Personal access token (None for anonymous access)
            api_url: Base URL of the REST API
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header value
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": user_agent,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        else:
            logger.warning("No GitHub token configured; requests are unauthenticated")

        self.api_url = api_url.rstrip("/")
        self._http = httpx.Client(
            base_url=self.api_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: GitHubConfig) -> GitHubClient:
        """Build a client from the 'github' configuration section."""
        return cls(
            config.token,
            api_url=config.api_url,
            timeout=config.timeout,
            user_agent=config.user_agent,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _send(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        logger.debug("%s %s (%s)", method, path, operation)
        try:
            return self._http.request(method, path, json=json, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise RemoteFaultError(f"{operation} failed: {e}", path=path) from e

    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Issue one request and decode its JSON body.

        Raises:
            NotFoundError: On 404
            RemoteFaultError: On any other non-2xx status or transport failure
        """
        response = self._send(method, path, operation, json=json, params=params, headers=headers)
        self._raise_for_status(response, operation, path)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _raise_for_status(response: httpx.Response, operation: str, path: str) -> None:
        if response.is_success:
            return
        if response.status_code == 404:
            raise NotFoundError(f"{operation}: not found", path=path)
        raise RemoteFaultError(
            f"{operation} failed",
            status_code=response.status_code,
            body=response.text,
            path=path,
        )

    @staticmethod
    def _repo_path(repo: RepoInfo, suffix: str) -> str:
        return f"/repos/{repo.owner}/{repo.repo}/{suffix}"

    # ------------------------------------------------------------------
    # Git database reads
    # ------------------------------------------------------------------

    def get_branch_head(self, repo: RepoInfo, branch: str) -> str:
        """
        Get the commit id a branch points at.

        Raises:
            NotFoundError: If the branch does not exist
        """
        data = self._request(
            "GET",
            self._repo_path(repo, f"git/ref/heads/{quote(branch, safe='/')}"),
            "get ref",
        )
        return str(data["object"]["sha"])

    def get_commit(self, repo: RepoInfo, sha: str) -> CommitNode:
        data = self._request("GET", self._repo_path(repo, f"git/commits/{sha}"), "get commit")
        return CommitNode.from_api(data)

    def get_tree(self, repo: RepoInfo, sha: str, recursive: bool = False) -> TreeNode:
        params = {"recursive": "1"} if recursive else None
        data = self._request(
            "GET", self._repo_path(repo, f"git/trees/{sha}"), "get tree", params=params
        )
        return TreeNode.from_api(data)

    # ------------------------------------------------------------------
    # Git database writes
    # ------------------------------------------------------------------

    def create_blob(self, repo: RepoInfo, content: str | bytes) -> str:
        """
        Store content as a blob.

        Text is sent as utf-8, bytes as base64. The returned id is derived
        from the content, so identical content always yields the same id.
        """
        if isinstance(content, bytes):
            payload = {"content": base64.b64encode(content).decode("ascii"), "encoding": "base64"}
        else:
            payload = {"content": content, "encoding": "utf-8"}
        data = self._request("POST", self._repo_path(repo, "git/blobs"), "create blob", json=payload)
        return str(data["sha"])

    def create_tree(
        self,
        repo: RepoInfo,
        entries: Sequence[TreeEntry],
        base_tree: str | None = None,
    ) -> str:
        payload: dict[str, Any] = {"tree": [entry.to_api() for entry in entries]}
        if base_tree:
            payload["base_tree"] = base_tree
        data = self._request("POST", self._repo_path(repo, "git/trees"), "create tree", json=payload)
        return str(data["sha"])

    def create_commit(
        self,
        repo: RepoInfo,
        message: str,
        tree_sha: str,
        parent_sha: str,
    ) -> CommitNode:
        payload = {"message": message, "tree": tree_sha, "parents": [parent_sha]}
        data = self._request(
            "POST", self._repo_path(repo, "git/commits"), "create commit", json=payload
        )
        commit = CommitNode.from_api(data)
        if not commit.html_url:
            commit = commit.model_copy(update={"html_url": repo.commit_url(commit.sha)})
        return commit

    def update_ref(
        self,
        repo: RepoInfo,
        branch: str,
        sha: str,
        force: bool = False,
    ) -> RefUpdate:
        """
        Move a branch to ``sha``.

        A non-forced update the remote refuses as not-a-fast-forward (the
        branch moved since it was read) is reported as CONFLICT.

        Raises:
            NotFoundError: If the branch does not exist
            RemoteFaultError: On any other failure
        """
        path = self._repo_path(repo, f"git/refs/heads/{quote(branch, safe='/')}")
        response = self._send("PATCH", path, "update ref", json={"sha": sha, "force": force})

        if response.status_code in (409, 422):
            body = response.text
            lowered = body.lower()
            if response.status_code == 409 or "fast forward" in lowered or "fast-forward" in lowered:
                logger.info("Ref update on %s rejected: branch moved", branch)
                return RefUpdate(
                    status=RefUpdateStatus.CONFLICT, branch=branch, sha=sha, detail=body
                )
            if "reference does not exist" in lowered:
                raise NotFoundError(f"update ref: branch {branch!r} not found", path=path)

        self._raise_for_status(response, "update ref", path)
        data = response.json() if response.content else {}
        new_sha = str((data.get("object") or {}).get("sha", sha))
        return RefUpdate(status=RefUpdateStatus.UPDATED, branch=branch, sha=new_sha)

    def create_branch(self, repo: RepoInfo, new_branch: str, from_branch: str) -> str:
        """
        Create a branch at the current head of another branch.

        Returns:
            The commit id the new branch starts at
        """
        head_sha = self.get_branch_head(repo, from_branch)
        self._request(
            "POST",
            self._repo_path(repo, "git/refs"),
            "create branch",
            json={"ref": f"refs/heads/{new_branch}", "sha": head_sha},
        )
        logger.info("Created branch %s from %s (%s)", new_branch, from_branch, head_sha[:8])
        return head_sha

    # ------------------------------------------------------------------
    # Content API (single file)
    # ------------------------------------------------------------------

    def get_file(self, repo: RepoInfo, path: str, ref: str) -> FileContent:
        """
        Look up a single file on a ref.

        Returns ``exists=False`` when the file (or the ref) is absent.
        """
        try:
            data = self._request(
                "GET",
                self._repo_path(repo, f"contents/{quote(path, safe='/')}"),
                "get content",
                params={"ref": ref},
            )
        except NotFoundError:
            logger.debug("No file at %s on %s", path, ref)
            return FileContent.missing(path)
        return FileContent.from_api(path, data)

    def put_file(
        self,
        repo: RepoInfo,
        path: str,
        content: str,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> CommitNode:
        """
        Create or overwrite one file in one commit.

        Args:
            sha: Current blob id of the file; required by the remote to
                overwrite an existing file

        Raises:
            ConflictError: If the file changed since ``sha`` was read, or
                exists and no ``sha`` was given
        """
        api_path = self._repo_path(repo, f"contents/{quote(path, safe='/')}")
        payload: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if sha:
            payload["sha"] = sha

        response = self._send("PUT", api_path, "put content", json=payload)
        if response.status_code == 409 or (
            response.status_code == 422 and '"sha"' in response.text
        ):
            raise ConflictError(
                f"File {path} changed on {branch} since it was read",
                path=path,
                branch=branch,
            )
        self._raise_for_status(response, "put content", api_path)

        data = response.json()
        commit = CommitNode.from_api(data["commit"])
        action = "Updated" if response.status_code == 200 else "Created"
        logger.info("%s %s on %s (%s)", action, path, branch, commit.sha[:8])
        return commit

    # ------------------------------------------------------------------
    # Pull requests
    # ------------------------------------------------------------------

    def create_pull_request(
        self,
        repo: RepoInfo,
        title: str,
        head: str,
        base: str,
        body: str = "",
        draft: bool = False,
    ) -> PullRequest:
        payload = {
            "title": title,
            "head": head,
            "base": base,
            "body": body,
            "draft": draft,
            "maintainer_can_modify": True,
        }
        data = self._request(
            "POST", self._repo_path(repo, "pulls"), "create pull request", json=payload
        )
        pr = PullRequest.from_api(data)
        logger.info("Opened PR #%d from %s into %s", pr.number, head, base)
        return pr

    def get_pull_request(self, repo: RepoInfo, number: int) -> PullRequest:
        data = self._request("GET", self._repo_path(repo, f"pulls/{number}"), "get pull request")
        return PullRequest.from_api(data)

    # ------------------------------------------------------------------
    # Search and identity
    # ------------------------------------------------------------------

    def search_code(
        self,
        repo: RepoInfo,
        keyword: str,
        qualifiers: Iterable[str] = (),
    ) -> CodeSearchResult:
        """Run a keyword code search restricted to ``repo``, with text-match snippets."""
        query = build_search_query(keyword, repo, qualifiers)
        data = self._request(
            "GET",
            "/search/code",
            "search code",
            params={"q": query},
            headers={"Accept": TEXT_MATCH_MEDIA_TYPE},
        )
        return CodeSearchResult.from_api(data)

    def get_authenticated_user(self) -> str:
        """Return the login of the token's owner."""
        data = self._request("GET", "/user", "get authenticated user")
        return str(data["login"])
