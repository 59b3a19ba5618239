"""notesync rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from notesync.cli.errors import err_no_db
    console.print(err_no_db(".notesync.db"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from notesync.errors import ChunkError, IndexWriteError, LoadError

_ENV_MAP = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "azure": "AZURE_API_KEY",
}


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'openai'. Set:  export OPENAI_API_KEY=sk-...
    """
    env_var = _ENV_MAP.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_no_db(db_path: str = ".notesync.db") -> str:
    """No note database in the project directory."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  notesync init"
    )


def err_config(message: str) -> str:
    """notesync.yaml or the global config is invalid."""
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {message}\n"
        "  Fix notesync.yaml (or ~/.notesync/config.yaml) and retry."
    )


def err_note_not_found(note_id: int) -> str:
    return (
        f"[yellow]Note not found:[/] {note_id}\n"
        "  Run:  notesync note list  to see all notes."
    )


def err_attachment_not_found(path: str) -> str:
    return (
        f"[yellow]Attachment not found:[/] '{path}'\n"
        "  Run:  notesync note list --attachments  to see stored paths."
    )


def err_file_not_found(path: str) -> str:
    return f"[red]Error:[/] File not found: '{path}'\n  Check the path and retry."


def err_no_content() -> str:
    return (
        "[red]Error:[/] No note content given.\n"
        "  Pass the text as an argument or use --file PATH."
    )


def _root_cause(error: BaseException) -> BaseException:
    while error.__cause__ is not None:
        error = error.__cause__
    return error


def err_operation_failed(action: str, error: BaseException | None, model: str = "") -> str:
    """An engine call returned ``ok=False``; explain the cause and the fix."""
    if error is None:
        return f"[red]Error:[/] {action} failed."

    cause = _root_cause(error)
    if isinstance(cause, OSError) and "API key" in str(cause):
        provider = model.split("/")[0] if "/" in model else "openai"
        return f"[red]Error:[/] {action} failed.\n" + err_no_api_key(provider)

    if isinstance(error, LoadError):
        hint = "Check that the file exists and is a supported, readable format."
    elif isinstance(error, ChunkError):
        hint = "The content could not be split; check it is plain text or Markdown."
    elif isinstance(error, IndexWriteError):
        hint = "Nothing was committed. Run:  notesync rebuild  to retry."
    else:
        hint = "Run with --verbose for details."
    return f"[red]Error:[/] {action} failed: {error}\n  {hint}"
