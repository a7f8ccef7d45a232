"""
Playbook CLI - search command.
"""

import typer

from playbook.cli.runtime import emit, open_service

app = typer.Typer(
    name="search",
    help="Keyword search over the runbook and the prompt database",
    no_args_is_help=True,
)


@app.command("runbook")
def search_runbook(keyword: str = typer.Argument(..., help="Keyword or phrase")) -> None:
    """Search the runbook and fetch the top hits."""
    with open_service() as service:
        result = service.search_runbook(keyword=keyword)
    emit(result)


@app.command("prompts")
def search_prompts(keyword: str = typer.Argument(..., help="Keyword or phrase")) -> None:
    """Search the prompt database (synced prompts excluded)."""
    with open_service() as service:
        result = service.search_prompts(keyword=keyword)
    emit(result)
