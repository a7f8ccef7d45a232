"""
Exit codes and error output for the playbook CLI.
"""

from enum import IntEnum

from rich.console import Console

err_console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for playbook CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """The operation ran and reported an error."""

    USER_ERROR = 2
    """Bad input or configuration (actionable by the user)."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Example:
        >>> print_error(
        ...     "No GitHub token configured",
        ...     solution="export GITHUB_PERSONAL_ACCESS_TOKEN=...",
        ... )
    """
    err_console.print(f"[red]Error:[/red] {problem}")

    if reason:
        err_console.print(f"[dim]{reason}[/dim]")

    if solution:
        err_console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_missing_token_error() -> None:
    print_error(
        "No GitHub token configured",
        reason="Writes and searches against GitHub need a personal access token",
        solution="export GITHUB_PERSONAL_ACCESS_TOKEN=<token>  # or add it to .env",
    )
