from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.text import Text

from mstodo_sync import __version__
from mstodo_sync.cli.cmds import register_identity, register_sync
from mstodo_sync.logging import configure_logging
from mstodo_sync.settings import default_settings_path

console = Console()


def _show_banner():
    console.print()
    console.print(Text(f"  mstodo-sync v{__version__}", style="bold #6366f1"))
    console.print(Text("  Markdown checklists <-> Microsoft To Do", style="dim italic"))
    console.print()


def _show_help():
    _show_banner()

    console.print(Text("  Commands", style="bold #a78bfa"))
    console.print()
    commands = [
        ("push", "Create or update one task per selected line"),
        ("push-one", "Create or update a single task from the selection"),
        ("today", "Render open and today's completed tasks"),
        ("anchors", "Show the anchor identity table"),
    ]
    for cmd, desc in commands:
        console.print(f"    [bold #6366f1]{cmd:16}[/bold #6366f1] [dim]{desc}[/dim]")
    console.print()
    console.print(f"    [dim]Settings:[/dim] [white]{default_settings_path()}[/white]")
    console.print("    [dim]Run[/dim] [white]mstodo-sync --help[/white] [dim]for all options[/dim]")
    console.print()


def version_callback(value: bool):
    """Show version and exit."""
    if value:
        typer.echo(f"mstodo-sync {__version__}")
        raise typer.Exit()


_TYPER_HELP = """Sync markdown checklist lines with Microsoft To Do.

**Quick start:**

* `mstodo-sync push notes.md --lines 3:8`: push lines 3-8
* `mstodo-sync today`: print today's task lists

Set `MSTODO_ACCESS_TOKEN` (or put it in `.env`) before syncing.
"""

app = typer.Typer(
    invoke_without_command=True,
    no_args_is_help=False,
    add_completion=False,
    help=_TYPER_HELP,
    rich_markup_mode="markdown",
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        envvar="MSTODO_SYNC_SETTINGS",
        help="Settings JSON file (anchor table, list, display options).",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="DEBUG, INFO, WARNING or ERROR.",
    ),
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """mstodo-sync: Markdown checklists <-> Microsoft To Do."""
    configure_logging(level=log_level)
    ctx.obj = {"settings_path": settings}
    if ctx.invoked_subcommand is None:
        _show_help()
        raise typer.Exit()


register_sync(app)
register_identity(app)


def main():
    app()


if __name__ == "__main__":
    main()
