"""Rich console output helpers for the CLI."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mstodo_sync.commands import SyncReport
from mstodo_sync.identity import EMPTY_ID, IdentityTable

console = Console()
err_console = Console(stderr=True)


def print_cli_error(message: str, hint: str | None = None) -> None:
    err_console.print(f"[red]✗[/red] {escape(message)}")
    if hint:
        err_console.print(f"  [dim]{escape(hint)}[/dim]")


def print_report(report: SyncReport, *, show_text: bool = False) -> None:
    if not report.outcomes:
        console.print("[yellow]⚠[/yellow] [dim]No task lines in the selection[/dim]")
        return

    created = sum(1 for o in report.outcomes if o.ok and o.created)
    updated = sum(1 for o in report.outcomes if o.ok and not o.created)
    console.print(
        f"[green]✓[/green] {created} created, {updated} updated"
        + (f", [red]{len(report.failed)} failed[/red]" if report.failed else "")
    )
    for outcome in report.failed:
        anchor = f" ^{outcome.anchor}" if outcome.anchor else ""
        console.print(
            f"  [red]✗[/red] line {outcome.record.index + 1}{anchor}: "
            f"[white]{escape(outcome.line)}[/white] [dim]({escape(str(outcome.error))})[/dim]",
            highlight=False,
        )
    if show_text and report.text is not None:
        console.print()
        console.print(report.text, markup=False, highlight=False)


def print_identity(table: IdentityTable) -> None:
    grid = Table(title=f"Identity table (counter {table.counter})", show_lines=False)
    grid.add_column("Anchor", style="bold #6366f1")
    grid.add_column("Remote task id")
    for anchor, task_id in table.lookup.items():
        grid.add_row(f"^{anchor}", task_id if task_id != EMPTY_ID else "[red]<no id>[/red]")
    console.print(grid)
