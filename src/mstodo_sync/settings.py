"""Persisted settings.

The settings file keeps the key names of the Obsidian plugin data file, so
an existing ``data.json`` can be pointed at directly:

    {
        "taskIdLookup": {"a100001": "AAMkAG..."},
        "taskIdIndex": 1,
        "todoListSync": {"listName": "Inbox", "listId": "AQMkAD..."},
        "displayOptions_DateFormat": "%Y-%m-%d"
    }

Keys this package does not know about are kept on save.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from mstodo_sync.errors import ConfigurationError
from mstodo_sync.identity import IdentityTable
from mstodo_sync.logging import get_logger

__all__ = [
    "DEFAULT_GRAPH_URL",
    "SettingsStore",
    "SyncSettings",
    "TodoListSync",
    "default_settings_path",
    "get_access_token",
    "get_graph_url",
]

logger = get_logger("settings")

SETTINGS_ENV = "MSTODO_SYNC_SETTINGS"
TOKEN_ENV = "MSTODO_ACCESS_TOKEN"
GRAPH_URL_ENV = "MSTODO_GRAPH_URL"
DEFAULT_GRAPH_URL = "https://graph.microsoft.com/v1.0"


class TodoListSync(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    list_name: str | None = Field(default=None, alias="listName")
    list_id: str | None = Field(default=None, alias="listId")


class SyncSettings(BaseModel):
    """Settings shared by the sync commands and the renderers."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    task_id_lookup: dict[str, str] = Field(default_factory=dict, alias="taskIdLookup")
    task_id_index: int = Field(default=0, ge=0, alias="taskIdIndex")
    todo_list_sync: TodoListSync = Field(default_factory=TodoListSync, alias="todoListSync")

    date_format: str = Field(default="%Y-%m-%d", alias="displayOptions_DateFormat")
    time_format: str = Field(default="%Y-%m-%d %H:%M", alias="displayOptions_TimeFormat")
    task_created_prefix: str = Field(default="🔎", alias="displayOptions_TaskCreatedPrefix")
    task_body_prefix: str = Field(default="💡", alias="displayOptions_TaskBodyPrefix")
    replace_add_created_at: bool = Field(
        default=False, alias="displayOptions_ReplaceAddCreatedAt"
    )
    task_format: str = Field(default="- [ ] {title}", alias="displayOptions_TaskFormat")
    created_at_label: str = Field(default="Created at", alias="displayOptions_CreatedAtLabel")
    created_in_file_label: str = Field(
        default="Created in file", alias="displayOptions_CreatedInFileLabel"
    )
    failed_marker: str = Field(default="[sync failed]", alias="displayOptions_FailedMarker")

    @property
    def list_id(self) -> str | None:
        return self.todo_list_sync.list_id

    def identity_table(self, **kwargs) -> IdentityTable:
        return IdentityTable(self.task_id_lookup, self.task_id_index, **kwargs)

    def absorb(self, table: IdentityTable) -> None:
        """Copy the table state back into the persisted fields."""
        self.task_id_lookup = table.lookup
        self.task_id_index = table.counter


def default_settings_path() -> Path:
    env = os.environ.get(SETTINGS_ENV)
    if env:
        return Path(env).expanduser()
    return Path.home() / ".config" / "mstodo-sync" / "settings.json"


def get_access_token() -> str:
    token = os.environ.get(TOKEN_ENV, "").strip()
    if not token:
        raise ConfigurationError(
            "No Microsoft Graph access token",
            config_key=TOKEN_ENV,
            hint=f"export {TOKEN_ENV}=<token with Tasks.ReadWrite scope>",
        )
    return token


def get_graph_url() -> str:
    return os.environ.get(GRAPH_URL_ENV, DEFAULT_GRAPH_URL).rstrip("/")


class SettingsStore:
    """Loads and atomically saves :class:`SyncSettings` as JSON."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path is not None else default_settings_path()

    def load(self) -> SyncSettings:
        if not self.path.exists():
            logger.debug("Settings file missing, using defaults", path=str(self.path))
            return SyncSettings()
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            return SyncSettings.model_validate(data)
        except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
            raise ConfigurationError(
                f"Cannot read settings file {self.path}: {e}",
                config_key=str(self.path),
            ) from e

    def save(self, settings: SyncSettings) -> None:
        """Write to a temp file in the same directory, fsync, then replace."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = settings.model_dump(mode="json", by_alias=True)
        fd, tmp = tempfile.mkstemp(prefix=".settings-", suffix=".json", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug("Saved settings", path=str(self.path))

    def bind_identity(self, settings: SyncSettings) -> IdentityTable:
        """Identity table whose every allocation is flushed through this store."""

        def commit(table: IdentityTable) -> None:
            settings.absorb(table)
            self.save(settings)

        return settings.identity_table(on_commit=commit)
