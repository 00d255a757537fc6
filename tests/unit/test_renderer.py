"""Tests for edit-back and list snapshot rendering."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from mstodo_sync.engine import SyncOutcome
from mstodo_sync.errors import RemoteTaskError
from mstodo_sync.extractor import TaskLineRecord
from mstodo_sync.models import RemoteTask, RemoteTaskList
from mstodo_sync.renderer import (
    format_task,
    render_outcome,
    render_outcomes,
    render_task,
    render_task_lists,
    snapshot_filter,
)
from mstodo_sync.settings import SyncSettings

NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone(timedelta(hours=2)))


def _outcome(title, anchor=None, *, action="create", error=None, created_at=None):
    record = TaskLineRecord(raw_text=title, clean_title=title, created_at=created_at)
    return SyncOutcome(record=record, action=action, anchor=anchor, error=error)


def _task(title, created, *, status="notStarted", body=None):
    data = {"id": title, "title": title, "status": status, "createdDateTime": created}
    if body is not None:
        data["body"] = {"content": body, "contentType": "text"}
    return RemoteTask.model_validate(data)


# -----------------------------------------------------------------------------
# Edit-back rendering
# -----------------------------------------------------------------------------


class TestRenderOutcome:
    def test_created_line(self):
        line = render_outcome(_outcome("Buy milk", "b200002"), SyncSettings(), NOW)
        assert line == "- [ ] Buy milk  ^b200002"

    def test_created_line_with_timestamp(self):
        settings = SyncSettings(replace_add_created_at=True)
        line = render_outcome(_outcome("Buy milk", "b200002"), settings, NOW)
        assert line == "- [ ] Buy milk Created at 2026-10-19 09:30 ^b200002"

    def test_updated_line_keeps_existing_timestamp(self):
        settings = SyncSettings(replace_add_created_at=True)
        outcome = _outcome(
            "Call Bob", "a100001", action="update", created_at="Created at 2026-01-02 08:00"
        )
        line = render_outcome(outcome, settings, NOW)
        assert line == "- [ ] Call Bob Created at 2026-01-02 08:00 ^a100001"

    def test_updated_line_gets_no_new_timestamp(self):
        settings = SyncSettings(replace_add_created_at=True)
        line = render_outcome(_outcome("Call Bob", "a100001", action="update"), settings, NOW)
        assert line == "- [ ] Call Bob  ^a100001"

    def test_failed_update_is_marked_and_keeps_anchor(self):
        outcome = _outcome("Call Bob", "a100001", action="update", error=RemoteTaskError("x"))
        line = render_outcome(outcome, SyncSettings(), NOW)
        assert line == "- [ ] Call Bob  [sync failed] ^a100001"

    def test_failed_create_has_no_anchor(self):
        outcome = _outcome("Buy milk", error=RemoteTaskError("x"))
        assert render_outcome(outcome, SyncSettings(), NOW) == "- [ ] Buy milk  [sync failed]"

    def test_failed_create_gets_no_timestamp(self):
        settings = SyncSettings(replace_add_created_at=True)
        outcome = _outcome("Buy milk", error=RemoteTaskError("x"))
        assert render_outcome(outcome, settings, NOW) == "- [ ] Buy milk  [sync failed]"

    def test_custom_format(self):
        settings = SyncSettings(task_format="* {title} #todo")
        assert render_outcome(_outcome("Buy milk", "k1"), settings, NOW) == "* Buy milk #todo  ^k1"


class TestRenderOutcomes:
    def test_joined_in_order(self):
        outcomes = [_outcome("one", "a1"), _outcome("two", "a2"), _outcome("three", "a3")]
        text = render_outcomes(outcomes, SyncSettings(), NOW)
        assert text.split("\n") == [
            "- [ ] one  ^a1",
            "- [ ] two  ^a2",
            "- [ ] three  ^a3",
        ]

    def test_empty(self):
        assert render_outcomes([], SyncSettings(), NOW) == ""


def test_format_task_without_placeholder():
    assert format_task(SyncSettings(task_format="TODO"), "x") == "TODO"


# -----------------------------------------------------------------------------
# List snapshot rendering
# -----------------------------------------------------------------------------


class TestRenderTask:
    def test_created_today_has_no_date(self):
        line = render_task(_task("Fresh", "2026-10-19T06:00:00.0000000Z"), SyncSettings(), NOW)
        assert line == "- [ ] Fresh    "

    def test_created_yesterday_shows_date(self):
        line = render_task(_task("Old", "2026-10-18T10:00:00Z"), SyncSettings(), NOW)
        assert line == "- [ ] Old  🔎[[2026-10-18]]  "

    def test_date_compared_in_local_time(self):
        # 23:00 UTC on the 18th is already the 19th at UTC+2.
        line = render_task(_task("Late", "2026-10-18T23:00:00Z"), SyncSettings(), NOW)
        assert "[[" not in line

    def test_completed_with_body(self):
        task = _task("Done", "2026-10-01T10:00:00Z", status="completed", body="see notes")
        line = render_task(task, SyncSettings(), NOW)
        assert line == "- [x] Done  🔎[[2026-10-01]]  💡see notes"

    def test_custom_prefixes_and_format(self):
        settings = SyncSettings(
            task_created_prefix="📅 ", task_body_prefix="> ", date_format="%d.%m.%Y"
        )
        task = _task("Old", "2026-10-01T10:00:00Z", body="b")
        assert render_task(task, settings, NOW) == "- [ ] Old  📅 [[01.10.2026]]  > b"

    def test_missing_created_date(self):
        task = RemoteTask(id="1", title="No date")
        assert render_task(task, SyncSettings(), NOW) == "- [ ] No date    "


class TestRenderTaskLists:
    def test_grouped_sorted_and_empty_lists_skipped(self):
        lists = [
            RemoteTaskList(
                display_name="Inbox",
                tasks=[
                    _task("done-1", "2026-10-19T07:00:00Z", status="completed"),
                    _task("open-1", "2026-10-19T07:00:00Z"),
                    _task("done-2", "2026-10-19T07:00:00Z", status="completed"),
                    _task("open-2", "2026-10-19T07:00:00Z"),
                ],
            ),
            RemoteTaskList(display_name="Empty", tasks=[]),
            RemoteTaskList(display_name="Work", tasks=[_task("w", "2026-10-19T07:00:00Z")]),
        ]

        text = render_task_lists(lists, SyncSettings(), NOW)

        assert text == (
            "**Inbox**\n"
            "- [ ] open-1    \n"
            "- [ ] open-2    \n"
            "- [x] done-1    \n"
            "- [x] done-2    \n"
            "\n\n"
            "**Work**\n"
            "- [ ] w    \n"
        )
        assert "Empty" not in text

    def test_all_lists_empty(self):
        lists = [RemoteTaskList(display_name="A"), RemoteTaskList(display_name="B")]
        assert render_task_lists(lists, SyncSettings(), NOW) == ""


@pytest.mark.parametrize(
    ("now", "day"),
    [(NOW, "2026-10-19"), (datetime(2026, 1, 2, 23, 59), "2026-01-02")],
)
def test_snapshot_filter(now, day):
    assert snapshot_filter(now) == (
        f"status ne 'completed' or completedDateTime/dateTime ge '{day}'"
    )
