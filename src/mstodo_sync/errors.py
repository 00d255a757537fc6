"""Error hierarchy for mstodo-sync.

All errors raised by this package derive from :class:`TodoSyncError`, so
callers can catch everything with a single ``except`` clause:

    >>> from mstodo_sync.errors import TodoSyncError
    >>> try:
    ...     await post_batch(...)
    ... except TodoSyncError as e:
    ...     print(e.hint)

Hierarchy:
    TodoSyncError
    ├── ConfigurationError
    ├── PreconditionError
    │   ├── NoSelectionError
    │   └── NoTargetListError
    ├── IdentityIntegrityError
    ├── EmptyTitleError
    └── RemoteTaskError
        └── IndeterminateTaskIdError
"""

from __future__ import annotations

import logging
from typing import Any, Literal

__all__ = [
    "ConfigurationError",
    "EmptyTitleError",
    "IdentityIntegrityError",
    "IndeterminateTaskIdError",
    "NoSelectionError",
    "NoTargetListError",
    "PreconditionError",
    "RemoteTaskError",
    "TodoSyncError",
    "log_exception",
]


def log_exception(
    logger: logging.Logger | Any,
    message: str,
    exc: BaseException,
    *,
    level: Literal["debug", "info", "warning", "error"] = "warning",
    include_traceback: bool = True,
) -> None:
    """Log an exception with a consistent ``message: Type: text`` layout."""
    log = getattr(logger, level)
    text = f"{message}: {type(exc).__name__}: {exc}"
    if include_traceback:
        log(text, exc_info=exc)
    else:
        log(text)


class TodoSyncError(Exception):
    """Base exception for mstodo-sync.

    Attributes:
        message: Human readable description.
        details: Structured context (anchor, list id, status code, ...).
        hint: Optional suggestion shown to the user.
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        hint: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.hint = hint

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\n  Hint: {self.hint}"
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class ConfigurationError(TodoSyncError):
    """Missing or invalid configuration (token, settings file)."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        hint: str | None = None,
    ):
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, details=details, hint=hint)
        self.config_key = config_key


class PreconditionError(TodoSyncError):
    """The operation was aborted before any remote call was made."""


class NoSelectionError(PreconditionError):
    def __init__(self, message: str = "Nothing is selected"):
        super().__init__(message, hint="Select the lines to sync, e.g. --lines 3:8")


class NoTargetListError(PreconditionError):
    def __init__(self, message: str = "No target task list is configured"):
        super().__init__(
            message,
            hint="Pass --list or set todoListSync.listId in the settings file",
        )


class IdentityIntegrityError(TodoSyncError):
    """An anchor in the text does not map to a usable remote task id."""

    def __init__(self, message: str, *, anchor: str | None = None):
        details = {"anchor": anchor} if anchor else {}
        super().__init__(message, details=details)
        self.anchor = anchor


class EmptyTitleError(TodoSyncError):
    """An anchored line has no title left to send."""

    def __init__(self, anchor: str):
        super().__init__(
            f"Line anchored with ^{anchor} has no title",
            details={"anchor": anchor},
            hint="Type a title before the anchor",
        )
        self.anchor = anchor


class RemoteTaskError(TodoSyncError):
    """A create, update or list call against the remote service failed."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        status_code: int | None = None,
        list_id: str | None = None,
        task_id: str | None = None,
        hint: str | None = None,
    ):
        if status_code is not None:
            message = f"{message} ({status_code})"
        if hint is None and status_code is not None:
            hint = _hint_for_status(status_code)
        details: dict[str, Any] = {}
        for key, value in (
            ("operation", operation),
            ("status_code", status_code),
            ("list_id", list_id),
            ("task_id", task_id),
        ):
            if value is not None:
                details[key] = value
        super().__init__(message, details=details, hint=hint)
        self.operation = operation
        self.status_code = status_code
        self.list_id = list_id
        self.task_id = task_id


class IndeterminateTaskIdError(RemoteTaskError):
    """The remote create call returned no task id."""

    def __init__(self, message: str = "Remote create returned no task id", **kwargs: Any):
        kwargs.setdefault("operation", "create")
        super().__init__(message, **kwargs)


def _hint_for_status(status_code: int) -> str | None:
    if status_code in (401, 403):
        return "Authentication failed. Refresh MSTODO_ACCESS_TOKEN (Tasks.ReadWrite scope)."
    if status_code == 404:
        return "Task or list not found. It may have been deleted on the server."
    if status_code == 429:
        return "Rate limited by the server. Wait a moment and sync again."
    return None
