"""notesync init — create the note database, index file, and config.

Creates (relative to the project directory):
  notesync.yaml          — project config (skipped if present)
  .notesync.db           — note store with schema
  .notesync/index.db     — vector index file (tables are created on first use)
  attachments/           — copies of attached files
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from notesync.cli.project import load_project_config
from notesync.config import write_project_config
from notesync.db.connection import Database
from notesync.db.schema import initialize

console = Console()


def init_cmd(
    project_dir: Annotated[
        Path,
        typer.Argument(help="Directory to initialize. Defaults to current directory."),
    ] = Path("."),
) -> None:
    """Initialize a notesync project. Existing data is preserved."""
    project_dir.mkdir(parents=True, exist_ok=True)

    cfg_path = write_project_config(project_dir)
    console.print(f"  [green]✓[/] {cfg_path.name}")

    cfg = load_project_config(project_dir, console)

    db_path = project_dir / cfg.storage.db
    with Database(db_path) as conn:
        initialize(conn)
    console.print(f"  [green]✓[/] {cfg.storage.db}")

    index_path = project_dir / cfg.storage.index
    with Database(index_path):
        pass
    console.print(f"  [green]✓[/] {cfg.storage.index}")

    (project_dir / cfg.storage.attachments_dir).mkdir(parents=True, exist_ok=True)
    console.print(f"  [green]✓[/] {cfg.storage.attachments_dir}/")

    console.print("\n[bold green]✓ notesync project initialized.[/]")
    console.print("\nNext steps:")
    console.print("  1. export OPENAI_API_KEY=sk-...           (embedding provider key)")
    console.print('  2. notesync note add "# My first note"    (store + index a note)')
    console.print('  3. notesync search "what did I write?"    (retrieve notes)')
