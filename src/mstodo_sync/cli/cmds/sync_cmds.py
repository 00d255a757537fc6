"""
CLI commands that push markdown task lines and pull task lists.

Usage:
    mstodo-sync push notes/daily.md --lines 3:8      # Sync lines 3-8, write anchors back
    mstodo-sync push notes/daily.md --no-replace     # Sync, print instead of writing
    mstodo-sync push-one notes/daily.md --lines 12   # Line 12 as a single task
    mstodo-sync today --output notes/today.md        # Open and today's completed tasks
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from mstodo_sync.cli.output import console, print_cli_error, print_report
from mstodo_sync.client import GraphTodoClient, MemoryTodoClient, TodoClient
from mstodo_sync.commands import post_batch, post_single, render_today_list, resolve_list_id
from mstodo_sync.engine import SyncEngine
from mstodo_sync.errors import TodoSyncError
from mstodo_sync.settings import SettingsStore, get_access_token, get_graph_url
from mstodo_sync.surface import BufferSurface, FileSurface, parse_line_range

app = typer.Typer(help="Push and pull tasks")

EXIT_ERROR = 1
EXIT_PARTIAL = 2


def _build_client(dry_run: bool) -> TodoClient:
    if dry_run:
        return MemoryTodoClient(auto_create=True)
    return GraphTodoClient(get_access_token(), base_url=get_graph_url())


def _store(ctx: typer.Context) -> SettingsStore:
    obj = ctx.obj or {}
    return SettingsStore(obj.get("settings_path"))


async def _push(
    store: SettingsStore,
    file: Path,
    lines: str | None,
    list_id: str | None,
    replace: bool,
    dry_run: bool,
    single: bool,
):
    settings = store.load()
    # A dry run must not grow the persisted identity table.
    table = settings.identity_table() if dry_run else store.bind_identity(settings)
    start, end = parse_line_range(lines)
    surface = FileSurface(file, start, end)
    if dry_run and replace:
        surface = BufferSurface(surface.text, surface.start, surface.end)

    if dry_run:
        # The in-memory service has no lists to look a name up in.
        list_id = list_id or settings.list_id or settings.todo_list_sync.list_name

    async with _build_client(dry_run) as client:
        if surface.has_selection():
            list_id = await resolve_list_id(client, settings, list_id)
        engine = SyncEngine(client, table, settings)
        command = post_single if single else post_batch
        return await command(engine, surface, list_id, file.stem, replace=replace)


def _run_push(ctx, file, lines, list_id, replace, dry_run, single) -> None:
    try:
        report = asyncio.run(_push(_store(ctx), file, lines, list_id, replace, dry_run, single))
    except TodoSyncError as e:
        print_cli_error(e.message, hint=e.hint)
        raise typer.Exit(EXIT_ERROR)
    except (OSError, ValueError) as e:
        print_cli_error(f"Cannot read {file}: {e}")
        raise typer.Exit(EXIT_ERROR)

    print_report(report, show_text=not replace or dry_run)
    if not report.ok:
        raise typer.Exit(EXIT_PARTIAL)


_FILE = typer.Argument(..., exists=True, dir_okay=False, help="Markdown file to read")
_LINES = typer.Option(None, "--lines", "-l", help="1-based line range, e.g. 3:8 or 5")
_LIST = typer.Option(None, "--list", help="Target list id (default: settings)")
_REPLACE = typer.Option(True, "--replace/--no-replace", help="Write anchored lines back")
_DRY_RUN = typer.Option(False, "--dry-run", help="Use an in-memory service; save nothing")


@app.command("push")
def push_cmd(
    ctx: typer.Context,
    file: Path = _FILE,
    lines: str | None = _LINES,
    list_id: str | None = _LIST,
    replace: bool = _REPLACE,
    dry_run: bool = _DRY_RUN,
):
    """Create or update one task per selected line."""
    _run_push(ctx, file, lines, list_id, replace, dry_run, single=False)


@app.command("push-one")
def push_one_cmd(
    ctx: typer.Context,
    file: Path = _FILE,
    lines: str | None = _LINES,
    list_id: str | None = _LIST,
    replace: bool = _REPLACE,
    dry_run: bool = _DRY_RUN,
):
    """Create or update a single task from the whole selection."""
    _run_push(ctx, file, lines, list_id, replace, dry_run, single=True)


async def _today(store: SettingsStore) -> str | None:
    settings = store.load()
    async with _build_client(dry_run=False) as client:
        return await render_today_list(client, settings)


@app.command("today")
def today_cmd(
    ctx: typer.Context,
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Append to this file instead of printing",
    ),
):
    """Render open tasks and tasks completed today, grouped by list."""
    try:
        text = asyncio.run(_today(_store(ctx)))
    except TodoSyncError as e:
        print_cli_error(e.message, hint=e.hint)
        raise typer.Exit(EXIT_ERROR)

    if text is None:
        print_cli_error("No task lists found")
        raise typer.Exit(EXIT_ERROR)
    if output is None:
        console.print(text, markup=False, highlight=False)
        return
    with open(output, "a", encoding="utf-8") as f:
        f.write(text)
    console.print(f"[green]✓[/green] Wrote task lists to {output}")


def register(parent: typer.Typer):
    """Register sync commands with the parent CLI app."""
    parent.command("push", rich_help_panel="Sync")(push_cmd)
    parent.command("push-one", rich_help_panel="Sync")(push_one_cmd)
    parent.command("today", rich_help_panel="Sync")(today_cmd)
