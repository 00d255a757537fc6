"""Abstract interface for remote to-do services."""

from __future__ import annotations

from abc import ABC, abstractmethod

from mstodo_sync.models import RemoteTask, RemoteTaskList


class TodoClient(ABC):
    """Create, update and list tasks on a remote service.

    Implementations raise :class:`~mstodo_sync.errors.RemoteTaskError` for
    failed calls. A create may return a task whose ``id`` is None; callers
    decide what to do with that.

    Subclasses must implement:
        - create_task()
        - update_task()
        - get_lists()
    """

    @abstractmethod
    async def create_task(self, list_id: str, title: str, body: str = "") -> RemoteTask:
        """Create a task in ``list_id``."""

    @abstractmethod
    async def update_task(self, list_id: str, task_id: str, title: str) -> RemoteTask:
        """Set the title of an existing task."""

    @abstractmethod
    async def get_lists(self, filter_expression: str | None = None) -> list[RemoteTaskList]:
        """All lists with their tasks, filtered server side by ``filter_expression``."""

    async def find_list(self, name: str) -> RemoteTaskList | None:
        """First list whose display name equals ``name``."""
        for task_list in await self.get_lists(filter_expression=None):
            if task_list.display_name == name:
                return task_list
        return None

    async def aclose(self) -> None:
        """Release network resources. No-op by default."""
        return None

    async def __aenter__(self) -> TodoClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
