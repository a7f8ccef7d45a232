"""
Shared plumbing for CLI commands: building the service, reading content
and printing results.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from playbook.cli.errors import ExitCode, print_error, print_missing_token_error
from playbook.core.config import load_config, load_layered_env
from playbook.core.documents import DocumentService, ToolResult
from playbook.core.github import GitHubClient

console = Console()


@contextmanager
def open_service() -> Iterator[DocumentService]:
    """Load .env files and config, then yield a service bound to a live client."""
    load_layered_env()
    try:
        config = load_config()
    except ValidationError as e:
        print_error("Invalid playbook configuration", reason=str(e))
        raise typer.Exit(ExitCode.USER_ERROR) from e

    if not config.github.token:
        print_missing_token_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    with GitHubClient.from_config(config.github) as client:
        yield DocumentService(client, config)


def read_content(content: str | None, file: Path | None) -> str:
    """
    Resolve document content from ``--content``, ``--file`` or stdin (``--file -``).
    """
    if content is not None and file is not None:
        print_error("Pass either --content or --file, not both")
        raise typer.Exit(ExitCode.USER_ERROR)
    if content is not None:
        return content
    if file is None:
        print_error("No content given", solution="--content '...' or --file path.md")
        raise typer.Exit(ExitCode.USER_ERROR)
    if str(file) == "-":
        return sys.stdin.read()
    try:
        return file.read_text(encoding="utf-8")
    except OSError as e:
        print_error(f"Cannot read {file}", reason=str(e))
        raise typer.Exit(ExitCode.USER_ERROR) from e


def emit(result: ToolResult) -> None:
    """Print the result as JSON; exit non-zero when it reports an error."""
    console.print_json(data=result.to_dict())
    if not result.ok:
        raise typer.Exit(ExitCode.GENERAL_ERROR)
