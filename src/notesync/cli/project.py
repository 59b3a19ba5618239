"""Shared helpers for opening a notesync project from CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from notesync.cli.errors import err_config, err_no_db
from notesync.config import ConfigError, NotesyncConfig, load_config
from notesync.sync.service import IndexService

ProjectOption = Annotated[
    Path,
    typer.Option("--project", "-C", help="Project directory (holds notesync.yaml)."),
]

DEFAULT_PROJECT = Path(".")


def load_project_config(project: Path, console: Console) -> NotesyncConfig:
    try:
        return load_config(project)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc


def open_service(project: Path, console: Console) -> IndexService:
    """Open the project's IndexService, or exit 1 if it is not initialized."""
    cfg = load_project_config(project, console)
    db_path = project / cfg.storage.db
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)
    return IndexService(cfg, project)
