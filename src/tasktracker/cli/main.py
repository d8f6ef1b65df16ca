"""tasktracker CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from tasktracker.cli.tasks import del_cmd, get_cmd, list_cmd, search_cmd, set_cmd
from tasktracker.logging_config import configure_quiet_mode, enable_debug_mode


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"tasktracker {_version()}")
        raise typer.Exit()


def _version() -> str:
    try:
        return importlib.metadata.version("tasktracker")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


app = typer.Typer(
    name="tasktracker",
    help=(
        "tasktracker — file-backed task store with semantic search.\n\n"
        "  tasktracker set     Create or update a task.\n"
        "  tasktracker search  Rank tasks by similarity to a query."
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
        typer.Option("--verbose", "-v", help="Debug logging to stderr."),
    ] = False,
) -> None:
    """tasktracker — file-backed task store with semantic search."""
    configure_quiet_mode()
    if verbose:
        enable_debug_mode()


app.command("set")(set_cmd)
app.command("get")(get_cmd)
app.command("del")(del_cmd)
app.command("list")(list_cmd)
app.command("search")(search_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed tasktracker version."""
    typer.echo(f"tasktracker {_version()}")


if __name__ == "__main__":
    app()
