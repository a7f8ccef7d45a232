"""
Playbook CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer

from playbook import __version__
from playbook.cli import documents, search

app = typer.Typer(
    name="playbook",
    help="Propose documents to GitHub as atomic commits and search them",
    no_args_is_help=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for playbook commands.

    Logs go to stderr so command output on stdout stays valid JSON.
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"playbook {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    Playbook - GitHub-backed documents for agents.

    Writes specs, ADRs, changelog entries and runbook suggestions as pull
    requests, syncs prompts and chat logs as single commits, and searches
    the runbook and prompt database.
    """
    setup_logging(debug)


app.command(name="spec")(documents.spec)
app.command(name="adr")(documents.adr)
app.command(name="changelog")(documents.changelog)
app.command(name="runbook")(documents.runbook)
app.command(name="prompt")(documents.prompt)
app.command(name="chat-log")(documents.chat_log)
app.add_typer(search.app, name="search")


def main() -> None:
    """Console script entry point."""
    app()


__all__ = ["app", "main", "setup_logging"]
