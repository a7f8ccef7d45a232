"""
Argument and result models for document operations.

Arguments are validated with Pydantic before anything touches the
remote; results are flat so an orchestrating process can log them as-is.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LifecycleOverrides(BaseModel):
    """Optional branch / commit / pull request overrides shared by proposals."""

    model_config = ConfigDict(extra="forbid")

    branch_name: str | None = Field(default=None, description="Branch for a new PR")
    commit_message: str | None = None
    pr_title: str | None = None
    pr_body: str | None = None
    pr_number: int | None = Field(
        default=None, ge=1, description="Existing PR to update instead of opening one"
    )


class CreateSpecArgs(LifecycleOverrides):
    spec_name: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)


class CreateAdrArgs(LifecycleOverrides):
    adr_name: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)


class CreateChangelogArgs(LifecycleOverrides):
    changelog_name: str = Field(..., min_length=1)
    entry_content: str = Field(..., min_length=1)


class SuggestRunbookArgs(LifecycleOverrides):
    content: str = Field(..., min_length=1)
    target_folder: str = Field(..., min_length=1)
    filename_slug: str | None = None


class SyncPromptArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    project_name: str = Field(..., min_length=1)
    prompt_name: str = Field(..., min_length=1)
    prompt_content: str = Field(..., min_length=1)

    @field_validator("project_name", "prompt_name")
    @classmethod
    def single_segment(cls, v: str) -> str:
        v = v.strip()
        if not v or "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError("must be a single path segment")
        return v


class UploadChatLogsArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    project_dir: Path
    user_id: str | None = None
    candidate_paths: list[str] | None = Field(
        default=None,
        description="Paths the conversation touched; defaults to project_dir",
    )


class SearchArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    keyword: str = Field(..., min_length=1)

    @field_validator("keyword")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("keyword must not be blank")
        return v.strip()


class ToolResult(BaseModel):
    """
    Flat outcome of a document operation.

    Only the fields relevant to the operation are set; ``to_dict`` drops
    the rest.
    """

    status: Literal["success", "error"]
    message: str
    pr_number: int | None = None
    pr_url: str | None = None
    path: str | None = None
    commit_sha: str | None = None
    commit_url: str | None = None
    github_url: str | None = None
    results: list[dict[str, Any]] | None = None
    total_count: int | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(cls, message: str, **fields: Any) -> ToolResult:
        return cls(status="success", message=message, **fields)

    @classmethod
    def error(cls, message: str, **fields: Any) -> ToolResult:
        return cls(status="error", message=message, **fields)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
