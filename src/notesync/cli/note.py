"""notesync note commands.

Commands:
  notesync note add [TEXT] [--file F]      — store a note and index it
  notesync note edit ID [TEXT] [--file F]  — replace content, re-index
  notesync note remove ID                  — drop vectors, then the note
  notesync note attach ID FILE             — copy + index an attachment
  notesync note detach PATH                — drop an attachment's vectors + row
  notesync note list                       — show notes and their flags
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from notesync.cli.errors import (
    err_attachment_not_found,
    err_file_not_found,
    err_no_content,
    err_note_not_found,
    err_operation_failed,
)
from notesync.cli.project import DEFAULT_PROJECT, ProjectOption, open_service
from notesync.sync.results import OperationResult
from notesync.sync.service import IndexService

console = Console()

note_app = typer.Typer(
    name="note",
    help="Add, edit, remove, and attach files to notes.",
    add_completion=False,
)

FileOption = Annotated[
    Path | None,
    typer.Option("--file", "-f", help="Read the note content from a file."),
]


def _read_content(text: str | None, file: Path | None) -> str:
    if file is not None:
        if not file.is_file():
            console.print(err_file_not_found(str(file)))
            raise typer.Exit(1)
        return file.read_text(encoding="utf-8")
    if not text:
        console.print(err_no_content())
        raise typer.Exit(1)
    return text


def _report(action: str, result: OperationResult, service: IndexService) -> None:
    if result.ok:
        detail = result.message or f"{result.chunk_count or 0} chunks"
        console.print(f"  [green]✓[/] {action} ({detail})")
        return
    console.print(err_operation_failed(action, result.error, service.cfg.embedding.model))
    raise typer.Exit(1)


@note_app.command("add")
def note_add_cmd(
    text: Annotated[str | None, typer.Argument(help="Note content (Markdown).")] = None,
    file: FileOption = None,
    project: ProjectOption = DEFAULT_PROJECT,
) -> None:
    """Store a new note and index it."""
    content = _read_content(text, file)
    with open_service(project, console) as service:
        note_id, result = service.add_note(content)
        console.print(f"Note [bold]{note_id}[/] stored.")
        _report("Indexed", result, service)


@note_app.command("edit")
def note_edit_cmd(
    note_id: Annotated[int, typer.Argument(help="Id of the note to edit.")],
    text: Annotated[str | None, typer.Argument(help="New content (Markdown).")] = None,
    file: FileOption = None,
    project: ProjectOption = DEFAULT_PROJECT,
) -> None:
    """Replace a note's content and re-index it."""
    content = _read_content(text, file)
    with open_service(project, console) as service:
        try:
            result = service.edit_note(note_id, content)
        except LookupError:
            console.print(err_note_not_found(note_id))
            raise typer.Exit(1)
        _report("Re-indexed", result, service)


@note_app.command("remove")
def note_remove_cmd(
    note_id: Annotated[int, typer.Argument(help="Id of the note to remove.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt.")] = False,
    project: ProjectOption = DEFAULT_PROJECT,
) -> None:
    """Remove a note, its attachments, and all of their vectors."""
    with open_service(project, console) as service:
        note = service.repo.get_note(note_id, with_attachments=True)
        if note is None:
            console.print(err_note_not_found(note_id))
            raise typer.Exit(0)

        console.print(f"\nRemove note [bold]{note_id}[/]: {note.preview!r}")
        console.print(f"  Attachments: {len(note.attachments)}")
        if not yes and not typer.confirm("Confirm removal?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)

        _report("Removed", service.remove_note(note_id), service)


@note_app.command("attach")
def note_attach_cmd(
    note_id: Annotated[int, typer.Argument(help="Note to attach the file to.")],
    file: Annotated[Path, typer.Argument(help="File to attach (pdf, docx, html, audio, text).")],
    project: ProjectOption = DEFAULT_PROJECT,
) -> None:
    """Attach a file to a note and index its text."""
    with open_service(project, console) as service:
        try:
            stored, result = service.attach(note_id, file)
        except FileNotFoundError:
            console.print(err_file_not_found(str(file)))
            raise typer.Exit(1)
        except LookupError:
            console.print(err_note_not_found(note_id))
            raise typer.Exit(1)
        console.print(f"Attached as [bold]{stored}[/].")
        _report("Indexed", result, service)


@note_app.command("detach")
def note_detach_cmd(
    path: Annotated[str, typer.Argument(help="Stored attachment path (see note list -a).")],
    project: ProjectOption = DEFAULT_PROJECT,
) -> None:
    """Remove an attachment and its vectors. The copied file is kept."""
    with open_service(project, console) as service:
        if service.repo.get_attachment_by_path(path) is None:
            console.print(err_attachment_not_found(path))
            raise typer.Exit(1)
        _report("Detached", service.detach(path), service)


@note_app.command("list")
def note_list_cmd(
    attachments: Annotated[
        bool, typer.Option("--attachments", "-a", help="Also list attachment paths.")
    ] = False,
    project: ProjectOption = DEFAULT_PROJECT,
) -> None:
    """List notes with their indexed flags."""
    with open_service(project, console) as service:
        notes = service.repo.list_notes()
        if not notes:
            console.print("[dim]No notes yet.[/]")
            raise typer.Exit(0)

        table = Table(title="Notes", show_header=True, header_style="bold")
        table.add_column("Id", justify="right")
        table.add_column("Preview")
        table.add_column("Indexed")
        table.add_column("Attachments")
        for note in notes:
            files = service.repo.list_attachments(note.id)
            indexed = "[green]✓[/]" if note.is_indexed else "[yellow]✗[/]"
            if not files:
                attached = "[dim]-[/]"
            elif attachments:
                attached = "\n".join(a.path for a in files)
            else:
                mark = "[green]✓[/]" if note.is_attachments_indexed else "[yellow]✗[/]"
                attached = f"{len(files)} {mark}"
            table.add_row(str(note.id), note.preview, indexed, attached)
        console.print(table)
