"""Microsoft To Do client over the Microsoft Graph REST API.

Example:
    ```python
    from mstodo_sync.client.graph import GraphTodoClient

    async with GraphTodoClient(access_token="eyJ0...") as client:
        task = await client.create_task(list_id, "Buy milk", "Created in file [[Daily]]")
    ```
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from mstodo_sync.client.base import TodoClient
from mstodo_sync.errors import RemoteTaskError
from mstodo_sync.logging import get_logger
from mstodo_sync.models import RemoteTask, RemoteTaskList
from mstodo_sync.settings import DEFAULT_GRAPH_URL

__all__ = ["GraphTodoClient"]

logger = get_logger("client.graph")

DEFAULT_TIMEOUT = 30.0


class GraphTodoClient(TodoClient):
    """Talks to ``/me/todo/lists`` with bearer token auth.

    Args:
        access_token: OAuth token with the ``Tasks.ReadWrite`` scope.
        base_url: Graph root, e.g. ``https://graph.microsoft.com/v1.0``.
        client: Shared ``httpx.AsyncClient``; not closed by this class.
        client_factory: Builds a client when ``client`` is not given.
    """

    def __init__(
        self,
        access_token: str,
        *,
        base_url: str = DEFAULT_GRAPH_URL,
        client: httpx.AsyncClient | None = None,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        self._owns_client = client is None
        if client is None:
            client = client_factory() if client_factory else httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)
        self._client = client

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # -------------------- TodoClient --------------------

    async def create_task(self, list_id: str, title: str, body: str = "") -> RemoteTask:
        payload: dict[str, Any] = {"title": title}
        if body:
            payload["body"] = {"content": body, "contentType": "text"}
        data = await self._request(
            "POST",
            f"/me/todo/lists/{list_id}/tasks",
            json=payload,
            operation="create",
            list_id=list_id,
        )
        return _parse(RemoteTask, data, operation="create", list_id=list_id)

    async def update_task(self, list_id: str, task_id: str, title: str) -> RemoteTask:
        data = await self._request(
            "PATCH",
            f"/me/todo/lists/{list_id}/tasks/{task_id}",
            json={"title": title},
            operation="update",
            list_id=list_id,
            task_id=task_id,
        )
        return _parse(RemoteTask, data, operation="update", list_id=list_id, task_id=task_id)

    async def get_lists(self, filter_expression: str | None = None) -> list[RemoteTaskList]:
        """Every list with its tasks; ``filter_expression`` is an OData ``$filter``."""
        lists = [
            _parse(RemoteTaskList, item, operation="list")
            for item in await self._collect("/me/todo/lists", operation="list")
        ]
        params = {"$filter": filter_expression} if filter_expression else None
        for task_list in lists:
            items = await self._collect(
                f"/me/todo/lists/{task_list.id}/tasks",
                params=params,
                operation="list",
                list_id=task_list.id,
            )
            task_list.tasks = [
                _parse(RemoteTask, item, operation="list", list_id=task_list.id) for item in items
            ]
        return lists

    async def find_list(self, name: str) -> RemoteTaskList | None:
        # Only the list metadata is needed here.
        for item in await self._collect("/me/todo/lists", operation="list"):
            task_list = _parse(RemoteTaskList, item, operation="list")
            if task_list.display_name == name:
                return task_list
        return None

    # -------------------- HTTP --------------------

    async def _collect(
        self,
        path: str,
        *,
        params: dict[str, str] | None = None,
        operation: str,
        list_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """Follow ``@odata.nextLink`` until the collection is exhausted."""
        items: list[dict[str, Any]] = []
        url: str | None = path
        while url:
            data = await self._request(
                "GET", url, params=params, operation=operation, list_id=list_id
            )
            items.extend(data.get("value", []))
            url = data.get("@odata.nextLink")
            # nextLink already carries the query string.
            params = None
        return items

    async def _request(
        self,
        method: str,
        url: str,
        *,
        operation: str,
        list_id: str | None = None,
        task_id: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        if not url.startswith("http"):
            url = f"{self._base_url}{url}"
        try:
            response = await self._client.request(method, url, headers=self._headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Graph request failed",
                method=method,
                status_code=e.response.status_code,
                operation=operation,
            )
            raise RemoteTaskError(
                f"Microsoft To Do {operation} failed: {_error_message(e.response)}",
                operation=operation,
                status_code=e.response.status_code,
                list_id=list_id,
                task_id=task_id,
            ) from e
        except httpx.TimeoutException as e:
            raise RemoteTaskError(
                f"Microsoft To Do {operation} timed out",
                operation=operation,
                list_id=list_id,
                task_id=task_id,
            ) from e
        except httpx.HTTPError as e:
            raise RemoteTaskError(
                f"Microsoft To Do {operation} failed: {e}",
                operation=operation,
                list_id=list_id,
                task_id=task_id,
            ) from e
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise RemoteTaskError(
                f"Microsoft To Do {operation} returned invalid JSON",
                operation=operation,
                list_id=list_id,
                task_id=task_id,
            ) from e


ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse(model: type[ModelT], data: Any, *, operation: str, **ids: str | None) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise RemoteTaskError(
            f"Microsoft To Do {operation} returned an unexpected payload",
            operation=operation,
            **ids,
        ) from e


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.reason_phrase or "unknown error"
