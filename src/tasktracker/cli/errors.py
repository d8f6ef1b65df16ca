"""tasktracker rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from tasktracker.cli.errors import err_task_not_found
    console.print(err_task_not_found("a1"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from rich.markup import escape


def err_task_not_found(task_id: str) -> str:
    """No task stored under *task_id*."""
    return (
        f"[red]Error:[/] Task '{escape(task_id)}' not found.\n"
        "  Run:  tasktracker list  to see all stored tasks."
    )


def err_invalid_input(detail: str) -> str:
    """Input rejected before touching storage, or a corrupt task file."""
    return (
        f"[red]Error:[/] {escape(detail)}\n"
        "  Use a non-empty id without path separators, and a non-empty title and description.\n"
        "  If a stored file is corrupt, fix it by hand or re-run:  tasktracker set <id> ..."
    )


def err_dimension_mismatch(detail: str) -> str:
    """Stored vectors were produced by a different embedding model."""
    return (
        f"[red]Error:[/] Embedding dimensions do not match: {escape(detail)}\n"
        "  The task directory was indexed with a different embedding model.\n"
        "  Use the original --model, or re-run  tasktracker set  for each task to re-embed."
    )


def err_provider(model: str, detail: str) -> str:
    """Embedding provider call failed (network, key, timeout)."""
    return (
        f"[red]Error:[/] Embedding provider '{escape(model)}' failed: {escape(detail)}\n"
        "  Check the provider is reachable and its API key is set, then retry.\n"
        "  Use:  --model <provider/model>  or set TASKTRACKER_EMBEDDING_MODEL."
    )


def err_storage(detail: str) -> str:
    """Filesystem failure in the task directory."""
    return (
        f"[red]Error:[/] Task storage failed: {escape(detail)}\n"
        "  Check the task directory exists and is writable, then retry."
    )


def err_config(detail: str) -> str:
    """Config file is malformed or contains a forbidden value."""
    return (
        f"[red]Error:[/] Invalid configuration: {escape(detail)}\n"
        "  Fix tasktracker.yaml or ~/.tasktracker/config.yaml and retry."
    )


def warn_stale_copy(path: str) -> str:
    """Task was saved, but its pre-relocation file could not be removed."""
    return (
        f"[yellow]⚠[/] Task saved, but the old copy could not be removed: '{escape(path)}'\n"
        "  Remove the stale file by hand; the saved copy is the one reported by  tasktracker get."
    )
