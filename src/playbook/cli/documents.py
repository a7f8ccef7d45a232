"""
Playbook CLI - document commands.

Each command builds the arguments of one document operation, runs it and
prints the flat result as JSON.
"""

from pathlib import Path

import typer

from playbook.cli.runtime import emit, open_service, read_content

CONTENT_OPTION = typer.Option(None, "--content", "-c", help="Document content")
FILE_OPTION = typer.Option(
    None, "--file", "-f", help="Read content from a file ('-' for stdin)"
)
BRANCH_OPTION = typer.Option(None, "--branch", help="Branch for a new PR")
MESSAGE_OPTION = typer.Option(None, "--message", "-m", help="Commit message")
TITLE_OPTION = typer.Option(None, "--title", help="Title of a new PR")
BODY_OPTION = typer.Option(None, "--body", help="Body of a new PR")
PR_OPTION = typer.Option(None, "--pr", help="Update this existing PR instead of opening one")


def spec(
    name: str = typer.Argument(..., help="Spec name (slugged into the filename)"),
    content: str | None = CONTENT_OPTION,
    file: Path | None = FILE_OPTION,
    branch: str | None = BRANCH_OPTION,
    message: str | None = MESSAGE_OPTION,
    title: str | None = TITLE_OPTION,
    body: str | None = BODY_OPTION,
    pr: int | None = PR_OPTION,
) -> None:
    """
    Propose a specification document as a pull request.

    Examples:
        playbook spec "Auth flow" -f auth-flow.md
        playbook spec "Auth flow" -f auth-flow.md --pr 42
    """
    text = read_content(content, file)
    with open_service() as service:
        result = service.create_spec(
            spec_name=name,
            content=text,
            branch_name=branch,
            commit_message=message,
            pr_title=title,
            pr_body=body,
            pr_number=pr,
        )
    emit(result)


def adr(
    name: str = typer.Argument(..., help="ADR name (slugged into the filename)"),
    content: str | None = CONTENT_OPTION,
    file: Path | None = FILE_OPTION,
    branch: str | None = BRANCH_OPTION,
    message: str | None = MESSAGE_OPTION,
    title: str | None = TITLE_OPTION,
    body: str | None = BODY_OPTION,
    pr: int | None = PR_OPTION,
) -> None:
    """Propose an architecture decision record as a pull request."""
    text = read_content(content, file)
    with open_service() as service:
        result = service.create_adr(
            adr_name=name,
            content=text,
            branch_name=branch,
            commit_message=message,
            pr_title=title,
            pr_body=body,
            pr_number=pr,
        )
    emit(result)


def changelog(
    name: str = typer.Argument(..., help="Changelog entry name"),
    content: str | None = CONTENT_OPTION,
    file: Path | None = FILE_OPTION,
    branch: str | None = BRANCH_OPTION,
    message: str | None = MESSAGE_OPTION,
    title: str | None = TITLE_OPTION,
    body: str | None = BODY_OPTION,
    pr: int | None = PR_OPTION,
) -> None:
    """Propose a changelog entry as a pull request."""
    text = read_content(content, file)
    with open_service() as service:
        result = service.create_changelog(
            changelog_name=name,
            entry_content=text,
            branch_name=branch,
            commit_message=message,
            pr_title=title,
            pr_body=body,
            pr_number=pr,
        )
    emit(result)


def runbook(
    folder: str = typer.Argument(..., help="Runbook folder, e.g. technical-patterns"),
    content: str | None = CONTENT_OPTION,
    file: Path | None = FILE_OPTION,
    slug: str | None = typer.Option(None, "--slug", help="Filename slug (default: from heading)"),
    branch: str | None = BRANCH_OPTION,
    message: str | None = MESSAGE_OPTION,
    title: str | None = TITLE_OPTION,
    body: str | None = BODY_OPTION,
    pr: int | None = PR_OPTION,
) -> None:
    """Suggest a runbook entry as a pull request."""
    text = read_content(content, file)
    with open_service() as service:
        result = service.suggest_runbook(
            content=text,
            target_folder=folder,
            filename_slug=slug,
            branch_name=branch,
            commit_message=message,
            pr_title=title,
            pr_body=body,
            pr_number=pr,
        )
    emit(result)


def prompt(
    project: str = typer.Argument(..., help="Project the prompt belongs to"),
    name: str = typer.Argument(..., help="Prompt name (file name without .md)"),
    content: str | None = CONTENT_OPTION,
    file: Path | None = FILE_OPTION,
) -> None:
    """Commit a prompt straight to the prompt database."""
    text = read_content(content, file)
    with open_service() as service:
        result = service.sync_prompt(project_name=project, prompt_name=name, prompt_content=text)
    emit(result)


def chat_log(
    project_dir: Path = typer.Argument(
        Path("."), help="Project whose .chat directory is uploaded"
    ),
    user: str | None = typer.Option(None, "--user", help="User id (default: GitHub login)"),
    path: list[str] | None = typer.Option(
        None,
        "--path",
        help="Path touched by the conversation, for project name inference (repeatable)",
    ),
) -> None:
    """Upload the project's chat logs, replacing the previous upload."""
    with open_service() as service:
        result = service.upload_chat_logs(
            project_dir=project_dir, user_id=user, candidate_paths=path or None
        )
    emit(result)
