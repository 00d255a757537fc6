"""
CLI commands for inspecting the anchor identity table.

Usage:
    mstodo-sync anchors           # Table of anchors and remote ids
    mstodo-sync anchors --json    # Raw persisted layout
"""

from __future__ import annotations

import json

import typer

from mstodo_sync.cli.output import print_cli_error, print_identity
from mstodo_sync.errors import TodoSyncError
from mstodo_sync.settings import SettingsStore

app = typer.Typer(help="Identity table commands")


@app.command("anchors")
def anchors_cmd(
    ctx: typer.Context,
    output_json: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON",
    ),
):
    """Show every anchor and the remote task it points to."""
    obj = ctx.obj or {}
    try:
        settings = SettingsStore(obj.get("settings_path")).load()
    except TodoSyncError as e:
        print_cli_error(e.message, hint=e.hint)
        raise typer.Exit(1)

    table = settings.identity_table()
    if output_json:
        typer.echo(json.dumps(table.to_dict(), indent=2))
    else:
        print_identity(table)


def register(parent: typer.Typer):
    """Register identity commands with the parent CLI app."""
    parent.command("anchors", rich_help_panel="Identity")(anchors_cmd)
