"""Remote task models, parsed from Microsoft Graph ``todoTask`` payloads."""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = ["RemoteTask", "RemoteTaskList", "TaskBody"]

# Graph emits 7 fractional digits ("2024-05-01T08:30:00.1234567Z").
_FRACTION = re.compile(r"(\.\d{6})\d+")


class TaskBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    content: str = ""
    content_type: str = Field(default="text", alias="contentType")


class RemoteTask(BaseModel):
    """A task as stored by the remote service."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = None
    title: str = ""
    body: TaskBody | None = None
    status: str = "notStarted"
    created_date_time: datetime | None = Field(default=None, alias="createdDateTime")

    @field_validator("created_date_time", mode="before")
    @classmethod
    def _parse_created(cls, value: Any) -> Any:
        if isinstance(value, dict):
            # dateTimeTimeZone shape: {"dateTime": "...", "timeZone": "UTC"}
            value = value.get("dateTime")
        if isinstance(value, str):
            value = _FRACTION.sub(r"\1", value.strip())
            if value.endswith("Z"):
                value = value[:-1] + "+00:00"
        return value

    @field_validator("created_date_time")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def completed(self) -> bool:
        return self.status == "completed"

    @property
    def body_text(self) -> str:
        return self.body.content if self.body else ""


class RemoteTaskList(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = None
    display_name: str = Field(default="", alias="displayName")
    tasks: list[RemoteTask] = Field(default_factory=list)
