"""tasktracker task commands.

Commands:
  tasktracker set <id> --title T --description D [--done]
  tasktracker get <id>
  tasktracker del <id>
  tasktracker list [--done | --active]
  tasktracker search <query> [--limit N]

Storage directory and embedding model come from config (see
tasktracker.config) unless overridden with --dir / --model.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from tasktracker.cli.errors import (
    err_config,
    err_dimension_mismatch,
    err_invalid_input,
    err_provider,
    err_storage,
    err_task_not_found,
    warn_stale_copy,
)
from tasktracker.config import ConfigError, TrackerConfig, load_config
from tasktracker.errors import (
    DimensionMismatchError,
    NotFoundError,
    ProviderError,
    StaleCopyError,
    StorageError,
    TrackerError,
    ValidationError,
)
from tasktracker.models import Task
from tasktracker.tracker import Tracker

console = Console()

_DirOption = Annotated[
    Optional[Path],
    typer.Option("--dir", "-d", help="Task directory (overrides storage.dir)."),
]
_ModelOption = Annotated[
    Optional[str],
    typer.Option("--model", "-m", help="LiteLLM embedding model (overrides embedding.model)."),
]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def set_cmd(
    task_id: Annotated[str, typer.Argument(help="Task id (file name stem).")],
    title: Annotated[str, typer.Option("--title", "-t", help="Short task title.")],
    description: Annotated[str, typer.Option("--description", help="Task description.")],
    done: Annotated[
        bool,
        typer.Option("--done/--active", help="Store the task as completed or active."),
    ] = False,
    directory: _DirOption = None,
    model: _ModelOption = None,
) -> None:
    """Create or update a task (re-embeds its title and description)."""
    cfg = _load(directory, model)
    tracker = _tracker(cfg)
    try:
        tracker.set(task_id, Task(title=title, description=description, done=done))
    except StaleCopyError as exc:
        console.print(warn_stale_copy(str(exc.path)))
        raise typer.Exit(1)
    except TrackerError as exc:
        _fail(exc, cfg)

    state = "done" if done else "active"
    console.print(f"[green]✓[/] Saved task [bold]{escape(task_id)}[/] ({state})")


def get_cmd(
    task_id: Annotated[str, typer.Argument(help="Task id.")],
    directory: _DirOption = None,
) -> None:
    """Show a single task."""
    cfg = _load(directory, None)
    try:
        task = _tracker(cfg).get(task_id)
    except TrackerError as exc:
        _fail(exc, cfg, task_id)

    status = "[green]✓ done[/]" if task.done else "[yellow]○ active[/]"
    console.print(
        Panel(
            f"{status}\n\n{escape(task.description)}",
            title=f"[bold]{escape(task.id)}[/]: {escape(task.title)}",
            expand=False,
        )
    )


def del_cmd(
    task_id: Annotated[str, typer.Argument(help="Task id.")],
    directory: _DirOption = None,
) -> None:
    """Delete a task. Deleting a missing task succeeds."""
    cfg = _load(directory, None)
    try:
        _tracker(cfg).delete(task_id)
    except TrackerError as exc:
        _fail(exc, cfg, task_id)
    console.print(f"[green]✓[/] Deleted: {escape(task_id)}")


def list_cmd(
    done: Annotated[
        bool,
        typer.Option("--done", help="Only completed tasks."),
    ] = False,
    active: Annotated[
        bool,
        typer.Option("--active", help="Only active tasks."),
    ] = False,
    directory: _DirOption = None,
) -> None:
    """List stored tasks (all of them unless --done or --active is given)."""
    if done and active:
        console.print(
            "[red]Error:[/] --done and --active are mutually exclusive.\n"
            "  Use:  tasktracker list  to show both."
        )
        raise typer.Exit(1)

    cfg = _load(directory, None)
    status_filter = True if done else False if active else None
    try:
        tasks = _tracker(cfg).list(status_filter)
    except TrackerError as exc:
        _fail(exc, cfg)

    if not tasks:
        console.print("[dim]No tasks.[/]")
        return

    table = Table(title="Tasks", show_header=True, header_style="bold")
    table.add_column("ID", style="bold")
    table.add_column("Status")
    table.add_column("Title")
    for task in tasks:
        status = "[green]✓ done[/]" if task.done else "[yellow]○ active[/]"
        table.add_row(escape(task.id), status, escape(task.title))
    console.print(table)


def search_cmd(
    query: Annotated[str, typer.Argument(help="Natural-language query.")],
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-n", min=1, help="Maximum results (overrides search.limit)."),
    ] = None,
    directory: _DirOption = None,
    model: _ModelOption = None,
) -> None:
    """Rank stored tasks by similarity to QUERY."""
    cfg = _load(directory, model)
    if limit is not None:
        cfg.search.limit = limit
    try:
        results = _tracker(cfg).search(query)
    except TrackerError as exc:
        _fail(exc, cfg)

    if not results:
        console.print("[dim]No matching tasks.[/]")
        return

    table = Table(title=f"Results for '{escape(query)}'", show_header=True, header_style="bold")
    table.add_column("Score", justify="right")
    table.add_column("ID", style="bold")
    table.add_column("Status")
    table.add_column("Title")
    for result in results:
        status = "[green]✓ done[/]" if result.task.done else "[yellow]○ active[/]"
        table.add_row(
            f"{result.score:.3f}", escape(result.task.id), status, escape(result.task.title)
        )
    console.print(table)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load(directory: Path | None, model: str | None) -> TrackerConfig:
    """Load config and apply CLI flag overrides (layer 1)."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    if directory is not None:
        cfg.storage.dir = str(directory)
    if model:
        cfg.embedding.model = model
    return cfg


def _tracker(cfg: TrackerConfig) -> Tracker:
    try:
        return Tracker.from_config(cfg)
    except StorageError as exc:
        console.print(err_storage(str(exc)))
        raise typer.Exit(1)


def _fail(exc: TrackerError, cfg: TrackerConfig, task_id: str = "") -> NoReturn:
    if isinstance(exc, NotFoundError):
        console.print(err_task_not_found(task_id))
    elif isinstance(exc, DimensionMismatchError):
        console.print(err_dimension_mismatch(str(exc)))
    elif isinstance(exc, ValidationError):
        console.print(err_invalid_input(str(exc)))
    elif isinstance(exc, ProviderError):
        console.print(err_provider(cfg.embedding.model, str(exc)))
    else:
        console.print(err_storage(str(exc)))
    raise typer.Exit(1)
