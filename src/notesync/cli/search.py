"""notesync search — retrieve the notes most relevant to a question."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from notesync.cli.errors import err_operation_failed
from notesync.cli.project import DEFAULT_PROJECT, ProjectOption, open_service

console = Console()


def search_cmd(
    question: Annotated[str, typer.Argument(help="Question or search text.")],
    k: Annotated[
        int | None,
        typer.Option("--top-k", "-k", min=1, help="Number of chunks to retrieve."),
    ] = None,
    show_context: Annotated[
        bool, typer.Option("--context", help="Print the best-matching chunk.")
    ] = False,
    project: ProjectOption = DEFAULT_PROJECT,
) -> None:
    """Show the notes whose chunks best match QUESTION."""
    with open_service(project, console) as service:
        try:
            retrieval = service.retrieve(question, k)
        except OSError as exc:
            console.print(err_operation_failed("Search", exc, service.cfg.embedding.model))
            raise typer.Exit(1)

    if not retrieval.notes:
        console.print("[dim]No matching notes.[/]")
        raise typer.Exit(0)

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Note", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Preview")
    for position, hit in enumerate(retrieval.notes, start=1):
        table.add_row(str(position), str(hit.note.id), f"{hit.score:.3f}", hit.note.preview)
    console.print(table)

    if show_context:
        console.print(Panel(retrieval.context, title="[bold]Context[/]", expand=False))
