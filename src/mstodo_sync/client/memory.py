"""In-memory to-do client.

Useful for tests and ``--dry-run``. Every call is recorded in ``calls`` and
failures or delays can be scripted per task title.

Example:
    >>> client = MemoryTodoClient()
    >>> client.add_list("inbox", "Inbox")
    >>> client.fail_on("Call Bob", RemoteTaskError("boom"))
"""

from __future__ import annotations

import asyncio
import itertools
from datetime import UTC, datetime

from mstodo_sync.client.base import TodoClient
from mstodo_sync.errors import RemoteTaskError
from mstodo_sync.models import RemoteTask, RemoteTaskList, TaskBody


class MemoryTodoClient(TodoClient):
    """Keeps lists in a dict.

    Args:
        auto_create: Create unknown lists and tasks on first use instead of
            answering 404. Used by ``--dry-run``.
    """

    def __init__(self, *, auto_create: bool = False) -> None:
        self.auto_create = auto_create
        self._lists: dict[str, RemoteTaskList] = {}
        self._ids = itertools.count(1)
        self._failures: dict[str, Exception] = {}
        self._delays: dict[str, float] = {}
        self._no_id_titles: set[str] = set()
        self.calls: list[tuple] = []
        self.completion_order: list[str] = []

    # -------------------- scripting --------------------

    def add_list(self, list_id: str, display_name: str) -> RemoteTaskList:
        task_list = RemoteTaskList(id=list_id, display_name=display_name)
        self._lists[list_id] = task_list
        return task_list

    def add_task(self, list_id: str, task: RemoteTask) -> RemoteTask:
        if task.id is None:
            task = task.model_copy(update={"id": f"task-{next(self._ids)}"})
        self._get_list(list_id).tasks.append(task)
        return task

    def fail_on(self, title: str, error: Exception | None) -> None:
        """Raise ``error`` from calls for ``title``; None clears it."""
        self._failures[title] = error

    def delay(self, title: str, seconds: float) -> None:
        self._delays[title] = seconds

    def omit_id_for(self, title: str) -> None:
        """Make create calls for ``title`` return a task without an id."""
        self._no_id_titles.add(title)

    def get_task(self, list_id: str, task_id: str) -> RemoteTask | None:
        for task in self._get_list(list_id).tasks:
            if task.id == task_id:
                return task
        return None

    @property
    def creates(self) -> list[tuple]:
        return [c for c in self.calls if c[0] == "create"]

    @property
    def updates(self) -> list[tuple]:
        return [c for c in self.calls if c[0] == "update"]

    # -------------------- TodoClient --------------------

    async def create_task(self, list_id: str, title: str, body: str = "") -> RemoteTask:
        self.calls.append(("create", list_id, title, body))
        await self._simulate(title)
        task = RemoteTask(
            title=title,
            body=TaskBody(content=body),
            created_date_time=datetime.now(UTC),
        )
        task = self.add_task(list_id, task)
        if title in self._no_id_titles:
            return task.model_copy(update={"id": None})
        return task

    async def update_task(self, list_id: str, task_id: str, title: str) -> RemoteTask:
        self.calls.append(("update", list_id, task_id, title))
        await self._simulate(title)
        task = self.get_task(list_id, task_id)
        if task is None and self.auto_create:
            task = self.add_task(list_id, RemoteTask(id=task_id, title=title))
        if task is None:
            raise RemoteTaskError(
                "Task not found",
                operation="update",
                status_code=404,
                list_id=list_id,
                task_id=task_id,
            )
        task.title = title
        return task

    async def get_lists(self, filter_expression: str | None = None) -> list[RemoteTaskList]:
        self.calls.append(("get_lists", filter_expression))
        return [task_list.model_copy(deep=True) for task_list in self._lists.values()]

    # -------------------- internals --------------------

    def _get_list(self, list_id: str) -> RemoteTaskList:
        if self.auto_create and list_id not in self._lists:
            self.add_list(list_id, list_id)
        try:
            return self._lists[list_id]
        except KeyError:
            raise RemoteTaskError(
                "List not found", status_code=404, list_id=list_id
            ) from None

    async def _simulate(self, title: str) -> None:
        await asyncio.sleep(self._delays.get(title, 0))
        self.completion_order.append(title)
        error = self._failures.get(title)
        if error is not None:
            raise error
