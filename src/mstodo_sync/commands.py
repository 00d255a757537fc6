"""Editor-facing commands: push a selection, push it as one task, pull today's lists.

Preconditions (something selected, a target list known) are checked before
any remote call and raise :class:`~mstodo_sync.errors.PreconditionError`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from mstodo_sync.client.base import TodoClient
from mstodo_sync.engine import SyncEngine, SyncOutcome
from mstodo_sync.errors import NoSelectionError, NoTargetListError
from mstodo_sync.logging import get_logger
from mstodo_sync.renderer import render_outcomes, render_task_lists, snapshot_filter
from mstodo_sync.settings import SyncSettings
from mstodo_sync.surface import TextSurface

__all__ = [
    "SyncReport",
    "post_batch",
    "post_single",
    "render_today_list",
    "resolve_list_id",
]

logger = get_logger("commands")


@dataclass
class SyncReport:
    """What a push command did.

    Attributes:
        outcomes: Per-line results in selection order.
        text: Rendered replacement text (None when nothing was synced).
        replaced: Whether ``text`` was written back to the surface.
    """

    outcomes: list[SyncOutcome] = field(default_factory=list)
    text: str | None = None
    replaced: bool = False

    @property
    def failed(self) -> list[SyncOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def ok(self) -> bool:
        return not self.failed


async def resolve_list_id(
    client: TodoClient,
    settings: SyncSettings,
    list_id: str | None = None,
) -> str:
    """Explicit id, else the configured id, else a lookup of the configured list name."""
    if list_id:
        return list_id
    if settings.list_id:
        return settings.list_id
    name = settings.todo_list_sync.list_name
    if name:
        task_list = await client.find_list(name)
        if task_list is not None and task_list.id:
            return task_list.id
        raise NoTargetListError(f"No task list named {name!r}")
    raise NoTargetListError()


def _check_preconditions(surface: TextSurface, list_id: str | None) -> str:
    if not surface.has_selection():
        raise NoSelectionError()
    if not list_id:
        raise NoTargetListError()
    return list_id


def _finish(
    engine: SyncEngine,
    surface: TextSurface,
    outcomes: list[SyncOutcome],
    replace: bool,
    now: datetime | None,
) -> SyncReport:
    if not outcomes:
        return SyncReport()
    text = render_outcomes(outcomes, engine.settings, now)
    if replace:
        surface.replace_selection(text)
    report = SyncReport(outcomes=outcomes, text=text, replaced=replace)
    if report.failed:
        logger.warning(
            "Some task lines failed",
            failed=len(report.failed),
            lines=", ".join(str(o.record.index + 1) for o in report.failed),
        )
    return report


async def post_batch(
    engine: SyncEngine,
    surface: TextSurface,
    list_id: str | None,
    file_name: str | None = None,
    *,
    replace: bool = True,
    now: datetime | None = None,
) -> SyncReport:
    """Sync every line of the selection and optionally write the anchored lines back."""
    list_id = _check_preconditions(surface, list_id)
    outcomes = await engine.post_batch(list_id, surface.get_selection(), file_name)
    return _finish(engine, surface, outcomes, replace, now)


async def post_single(
    engine: SyncEngine,
    surface: TextSurface,
    list_id: str | None,
    file_name: str | None = None,
    *,
    replace: bool = True,
    now: datetime | None = None,
) -> SyncReport:
    """Sync the whole selection as a single task."""
    list_id = _check_preconditions(surface, list_id)
    outcome = await engine.post_single(list_id, surface.get_selection(), file_name)
    return _finish(engine, surface, [outcome] if outcome else [], replace, now)


async def render_today_list(
    client: TodoClient,
    settings: SyncSettings,
    surface: TextSurface | None = None,
    *,
    now: datetime | None = None,
) -> str | None:
    """Open tasks and tasks completed today, grouped by list.

    Returns None when the service has no lists. With a surface the text also
    replaces its selection (or is inserted at the cursor).
    """
    now = now or datetime.now().astimezone()
    task_lists = await client.get_lists(snapshot_filter(now))
    if not task_lists:
        logger.warning("No task lists found")
        return None
    text = render_task_lists(task_lists, settings, now)
    logger.info("Fetched task lists", lists=len(task_lists))
    if surface is not None:
        surface.replace_selection(text)
    return text
