"""notesync rebuild — walk every note and bring the vector index up to date.

Notes whose indexed flag is set (and whose content is unchanged) are skipped.
A failing note is reported and the rebuild moves on; Ctrl-C stops it, keeping
everything already written.
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from notesync.cli.project import DEFAULT_PROJECT, ProjectOption, open_service
from notesync.sync.events import ProgressStatus, RebuildTally

console = Console()

_STATUS_MARK = {
    ProgressStatus.SUCCESS: "[green]✓[/]",
    ProgressStatus.SKIP: "[dim]↷[/]",
    ProgressStatus.ERROR: "[red]✗[/]",
}


def rebuild_cmd(
    reset: Annotated[
        bool,
        typer.Option("--reset", help="Clear all indexed flags first (re-embed everything)."),
    ] = False,
    project: ProjectOption = DEFAULT_PROJECT,
) -> None:
    """Rebuild the vector index from the note store."""
    tally = RebuildTally()
    with open_service(project, console) as service:
        total = service.repo.count_notes()
        if total == 0:
            console.print("[yellow]No notes to index.[/]")
            raise typer.Exit(0)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as prog:
            task = prog.add_task("Indexing notes…", total=total)
            try:
                for event in service.rebuild(reset=reset):
                    tally.record(event)
                    current, seen = event.progress
                    prog.update(task, completed=current, total=seen)
                    if event.status is not ProgressStatus.SKIP:
                        prog.console.print(
                            f"  {_STATUS_MARK[event.status]} {event.note_id}: {event.preview!r}"
                        )
            except KeyboardInterrupt:
                console.print("[yellow]Interrupted — completed notes stay indexed.[/]")

    console.print(
        f"\n[bold]{tally.total}[/] notes: "
        f"[green]{tally.succeeded} indexed[/], "
        f"[dim]{tally.skipped} skipped[/], "
        f"[red]{tally.failed} failed[/]"
    )
    for event in tally.errors:
        console.print(f"  [red]✗[/] note {event.note_id} {event.preview!r}: {event.error}")
    if tally.failed:
        raise typer.Exit(1)
