"""notesync CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from notesync.cli.init import init_cmd
from notesync.cli.note import note_app
from notesync.cli.rebuild import rebuild_cmd
from notesync.cli.search import search_cmd
from notesync.cli.status import status_cmd


def _version() -> str:
    try:
        return importlib.metadata.version("notesync")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"notesync {_version()}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # Third-party HTTP/provider chatter stays quiet even with --verbose.
    for name in ("LiteLLM", "httpx", "httpcore", "openai"):
        logging.getLogger(name).setLevel(logging.WARNING)


app = typer.Typer(
    name="notesync",
    help=(
        "notesync — keep a note store and its vector index in sync.\n\n"
        "  notesync note add   Store + index a note.\n"
        "  notesync rebuild    Index everything that is not indexed yet.\n"
        "  notesync search     Retrieve the notes relevant to a question."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log debug output to stderr."),
    ] = False,
) -> None:
    """notesync — keep a note store and its vector index in sync."""
    _configure_logging(verbose)


app.command("init")(init_cmd)
app.command("rebuild")(rebuild_cmd)
app.command("search")(search_cmd)
app.command("status")(status_cmd)
app.add_typer(note_app, name="note")


@app.command("version")
def version_cmd() -> None:
    """Show the installed notesync version."""
    typer.echo(f"notesync {_version()}")


if __name__ == "__main__":
    app()
