"""Render sync results and remote task lists back into markdown text."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from mstodo_sync.anchors import marker
from mstodo_sync.models import RemoteTask, RemoteTaskList
from mstodo_sync.settings import SyncSettings

if TYPE_CHECKING:
    from mstodo_sync.engine import SyncOutcome

__all__ = [
    "format_task",
    "render_outcome",
    "render_outcomes",
    "render_task",
    "render_task_lists",
    "snapshot_filter",
]


def format_task(settings: SyncSettings, title: str) -> str:
    return settings.task_format.replace("{title}", title)


def created_at_segment(settings: SyncSettings, now: datetime) -> str:
    return f"{settings.created_at_label} {now.strftime(settings.time_format)}"


def render_outcome(outcome: SyncOutcome, settings: SyncSettings, now: datetime) -> str:
    """``formatted title [created at ...] [failure marker] ^anchor``.

    Successfully created tasks get a fresh created-at segment when enabled;
    re-synced lines keep the one they already had. A failed create gets none,
    since without an anchor the segment would be read back as title text.
    """
    created = outcome.record.created_at or ""
    if outcome.ok and outcome.created and settings.replace_add_created_at:
        created = created_at_segment(settings, now)
    parts = [format_task(settings, outcome.line), created]
    if not outcome.ok:
        parts.append(settings.failed_marker)
    if outcome.anchor:
        parts.append(marker(outcome.anchor))
    return " ".join(parts)


def render_outcomes(
    outcomes: Sequence[SyncOutcome],
    settings: SyncSettings,
    now: datetime | None = None,
) -> str:
    """One line per outcome, in input order, joined with newlines."""
    now = now or datetime.now()
    return "\n".join(render_outcome(o, settings, now) for o in outcomes)


def snapshot_filter(now: datetime) -> str:
    """Open tasks plus tasks completed since the start of ``now``'s day."""
    return f"status ne 'completed' or completedDateTime/dateTime ge '{now:%Y-%m-%d}'"


def render_task(task: RemoteTask, settings: SyncSettings, now: datetime) -> str:
    done = "x" if task.completed else " "
    created = ""
    if task.created_date_time is not None:
        created_day = task.created_date_time.astimezone(now.tzinfo).strftime(settings.date_format)
        if created_day != now.strftime(settings.date_format):
            created = f"{settings.task_created_prefix}[[{created_day}]]"
    body = f"{settings.task_body_prefix}{task.body_text}" if task.body_text else ""
    return f"- [{done}] {task.title}  {created}  {body}"


def render_task_lists(
    task_lists: Iterable[RemoteTaskList],
    settings: SyncSettings,
    now: datetime | None = None,
) -> str:
    """Bold list heading plus one checklist line per task; empty lists are skipped.

    Completed tasks sort after open ones, otherwise the remote order is kept.
    """
    now = now or datetime.now().astimezone()
    segments = []
    for task_list in task_lists:
        if not task_list.tasks:
            continue
        tasks = sorted(task_list.tasks, key=lambda t: t.completed)
        lines = "\n".join(render_task(t, settings, now) for t in tasks)
        segments.append(f"**{task_list.display_name}**\n{lines}\n")
    return "\n\n".join(segments)
