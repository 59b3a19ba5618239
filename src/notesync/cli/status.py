"""notesync status — overview of the note store and the vector index."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from notesync.cli.project import DEFAULT_PROJECT, ProjectOption, load_project_config
from notesync.config import NotesyncConfig
from notesync.sync.service import IndexService

console = Console()


def status_cmd(project: ProjectOption = DEFAULT_PROJECT) -> None:
    """Show note counts, indexed coverage, and index size."""
    cfg = load_project_config(project, console)
    _show_project_panel(project, cfg)

    if not (project / cfg.storage.db).exists():
        console.print(
            Panel(
                "[yellow]No database found.[/]\n  Run:  notesync init",
                title="[bold]Notes[/]",
                expand=False,
            )
        )
        return

    with IndexService(cfg, project) as service:
        notes = service.repo.count_notes()
        indexed = service.repo.count_indexed_notes()
        chunks = service.repo.total_indexed_chunks()
        records = service.index.count()

    lines = [
        f"Notes: [bold]{notes}[/]  |  Indexed: [bold]{indexed}[/]  |  "
        f"Pending: [bold]{notes - indexed}[/]",
        f"Index records: [bold]{records:,}[/]  [dim](tracked chunks: {chunks:,})[/]",
    ]
    if records != chunks:
        lines.append("[yellow]⚠[/] Index and tracked chunk counts differ — run: notesync rebuild")
    console.print(Panel("\n".join(lines), title="[bold]Index[/]", expand=False))


def _show_project_panel(project: Path, cfg: NotesyncConfig) -> None:
    db = project / cfg.storage.db
    db_info = f"{cfg.storage.db}"
    if db.exists():
        size_mb = db.stat().st_size / (1024 * 1024)
        db_info = f"{cfg.storage.db} ({size_mb:.1f} MB)"
    lines = [
        f"Database:  {db_info}",
        f"Index:     {cfg.storage.index}",
        f"Embedding: {cfg.embedding.model} ({cfg.embedding.dimensions} dims)",
    ]
    console.print(Panel("\n".join(lines), title="[bold]Project[/]", expand=False))
