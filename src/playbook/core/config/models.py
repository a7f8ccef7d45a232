"""
Configuration data models for playbook.

These models define the structure of .playbook.json and
~/.config/playbook/config.json, with validation via Pydantic.
"""

from pydantic import BaseModel, ConfigDict, Field

from playbook.core.github.models import RepoInfo


class GitHubConfig(BaseModel):
    """Connection settings for the GitHub REST API."""

    api_url: str = Field(
        default="https://api.github.com",
        description="Base URL of the REST API (GitHub Enterprise uses <host>/api/v3)",
    )
    token: str | None = Field(
        default=None,
        repr=False,
        description="Bearer credential; normally supplied by GITHUB_PERSONAL_ACCESS_TOKEN",
    )
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    max_workers: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Concurrent requests for blob uploads and search content fetches",
    )
    user_agent: str = Field(default="playbook")


class TargetConfig(BaseModel):
    """A repository documents are written to, and the branch changes land on."""

    owner: str
    repo: str
    base_branch: str = Field(default="main")

    @property
    def repo_info(self) -> RepoInfo:
        return RepoInfo(owner=self.owner, repo=self.repo)


class DocsConfig(TargetConfig):
    """Where specs, ADRs and changelog entries are proposed."""

    owner: str = "inloopstudio"
    repo: str = "inloop-private-docs"
    specs_path: str = "src/content/docs/product_engineering/specs"
    adrs_path: str = "src/content/docs/product_engineering/adrs"
    changelog_path: str = "src/content/docs/product_engineering/changelog"
    inject_author: bool = Field(
        default=True,
        description="Add the authenticated user to the frontmatter 'authors' list",
    )


class RunbookConfig(TargetConfig):
    """Where runbook entries are suggested and searched."""

    owner: str = "dwarvesf"
    repo: str = "runbook"
    allowed_folders: list[str] = Field(
        default_factory=lambda: [
            "technical-patterns",
            "operational-state-reporting",
            "human-escalation-protocols",
            "diagnostic-and-information-gathering",
            "automations",
            "action-policies-and-constraints",
        ]
    )


class PromptsConfig(TargetConfig):
    """Where prompts are synced and searched."""

    owner: str = "dwarvesf"
    repo: str = "prompt-db"
    folder: str = "synced_prompts"
    prune_stale: bool = Field(
        default=False,
        description=(
            "Replace the whole <folder>/<project> subtree on every sync instead of "
            "upserting only the named prompt"
        ),
    )


class ChatLogsConfig(TargetConfig):
    """Where chat logs are uploaded."""

    owner: str = "dwarvesf"
    repo: str = "prompt-log"
    root: str = "project-logs"
    local_dir: str = ".chat"
    extensions: list[str] = Field(default_factory=lambda: [".chat", ".md"])
    known_projects: list[str] = Field(default_factory=list)


class SearchConfig(BaseModel):
    """Keyword search behaviour."""

    ttl_seconds: float = Field(default=300.0, ge=0, description="Cache lifetime of a query result")
    capacity: int = Field(default=128, ge=1, description="Maximum cached queries")
    result_limit: int = Field(default=5, ge=1, le=100, description="Hits whose bodies are fetched")


class PlaybookConfig(BaseModel):
    """
    Main playbook configuration.

    Merged from defaults, user config, project config and environment
    variables by ``load_config``.
    """

    model_config = ConfigDict(extra="ignore")

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    docs: DocsConfig = Field(default_factory=DocsConfig)
    runbook: RunbookConfig = Field(default_factory=RunbookConfig)
    prompts: PromptsConfig = Field(default_factory=PromptsConfig)
    chat_logs: ChatLogsConfig = Field(default_factory=ChatLogsConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
