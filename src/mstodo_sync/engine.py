"""Sync engine: push task lines to the remote service and keep anchors stable.

For every task line record the engine either

- updates the remote task its anchor resolves to (the anchor never changes), or
- creates a remote task and allocates a new anchor bound to the returned id.

All records of a batch are sent concurrently and the engine returns once
the whole batch has settled, with outcomes in input order. A failing line
yields a failed outcome; its siblings are unaffected.

Example:
    ```python
    engine = SyncEngine(client, store.bind_identity(settings), settings)
    outcomes = await engine.post_batch(list_id, "Buy milk\\nCall Bob ^a100001", "Daily")
    for outcome in outcomes:
        print(outcome.line, outcome.anchor, outcome.ok)
    ```
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from mstodo_sync.client.base import TodoClient
from mstodo_sync.errors import (
    EmptyTitleError,
    IdentityIntegrityError,
    IndeterminateTaskIdError,
    TodoSyncError,
    log_exception,
)
from mstodo_sync.extractor import LineExtractor, TaskLineRecord
from mstodo_sync.identity import IdentityTable
from mstodo_sync.logging import get_logger
from mstodo_sync.settings import SyncSettings

__all__ = ["SyncAction", "SyncEngine", "SyncOutcome"]

logger = get_logger("engine")

SyncAction = Literal["create", "update"]


@dataclass
class SyncOutcome:
    """Result for one task line.

    Attributes:
        record: The line that was processed.
        action: ``"create"`` for anchorless lines, ``"update"`` otherwise.
        anchor: Anchor to render. Set for every update and for creates that
            allocated one (including the empty-id sentinel case).
        remote_id: Remote task id, when known.
        error: Why the line failed; None on success.
    """

    record: TaskLineRecord
    action: SyncAction
    anchor: str | None = None
    remote_id: str | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def created(self) -> bool:
        return self.action == "create"

    @property
    def line(self) -> str:
        return self.record.clean_title


class SyncEngine:
    """Correlates task lines with remote tasks through an identity table.

    Args:
        client: Remote to-do service.
        table: Identity table; its commit hook must persist allocations.
        settings: Display labels used for the body annotation and parsing.
    """

    def __init__(
        self,
        client: TodoClient,
        table: IdentityTable,
        settings: SyncSettings | None = None,
        *,
        extractor: LineExtractor | None = None,
    ) -> None:
        self.client = client
        self.table = table
        self.settings = settings or SyncSettings()
        self.extractor = extractor or LineExtractor.from_settings(self.settings)

    def created_in_body(self, file_name: str | None) -> str:
        if not file_name:
            return ""
        return f"{self.settings.created_in_file_label} [[{file_name}]]"

    async def post_batch(
        self,
        list_id: str,
        selection: str,
        file_name: str | None = None,
    ) -> list[SyncOutcome]:
        """Sync every task line of ``selection``. An empty selection is a no-op."""
        records = self.extractor.extract(selection, body=self.created_in_body(file_name))
        return await self.sync(list_id, records)

    async def post_single(
        self,
        list_id: str,
        selection: str,
        file_name: str | None = None,
    ) -> SyncOutcome | None:
        """Sync the whole trimmed selection as one task line."""
        record = self.extractor.parse_block(selection, body=self.created_in_body(file_name))
        if record is None:
            return None
        (outcome,) = await self.sync(list_id, [record])
        return outcome

    async def sync(self, list_id: str, records: Sequence[TaskLineRecord]) -> list[SyncOutcome]:
        if not records:
            logger.info("Nothing to sync")
            return []

        logger.info("Syncing task lines", count=len(records), list_id=list_id)
        results = await asyncio.gather(
            *(self._sync_one(list_id, record) for record in records),
            return_exceptions=True,
        )

        # Anything other than a sync error is a bug; raise it once every line has settled.
        for result in results:
            if not isinstance(result, (SyncOutcome, TodoSyncError)):
                raise result

        outcomes: list[SyncOutcome] = []
        for record, result in zip(records, results):
            if isinstance(result, SyncOutcome):
                outcomes.append(result)
            else:
                log_exception(
                    logger, f"Task line {record.index + 1} ({record.clean_title!r}) failed", result
                )
                outcomes.append(
                    SyncOutcome(
                        record=record,
                        action="create" if record.is_new else "update",
                        anchor=record.anchor,
                        error=result,
                    )
                )

        failed = sum(1 for o in outcomes if not o.ok)
        logger.info(
            "Batch settled",
            new=sum(1 for o in outcomes if o.ok and o.created),
            updated=sum(1 for o in outcomes if o.ok and not o.created),
            failed=failed,
        )
        return outcomes

    async def _sync_one(self, list_id: str, record: TaskLineRecord) -> SyncOutcome:
        if record.anchor is not None:
            return await self._update(list_id, record, record.anchor)
        return await self._create(list_id, record)

    async def _update(self, list_id: str, record: TaskLineRecord, anchor: str) -> SyncOutcome:
        task_id = self.table.require(anchor)
        if not record.clean_title:
            raise EmptyTitleError(anchor)
        await self.client.update_task(list_id, task_id, record.clean_title)
        logger.debug("Updated task", anchor=anchor)
        return SyncOutcome(record=record, action="update", anchor=anchor, remote_id=task_id)

    async def _create(self, list_id: str, record: TaskLineRecord) -> SyncOutcome:
        task = await self.client.create_task(list_id, record.clean_title, record.body)
        # No await between here and the return: the allocation completes
        # before any sibling coroutine can run.
        try:
            anchor = self.table.allocate(task.id)
        except IdentityIntegrityError as e:
            # The remote task exists but no anchor could be made durable.
            log_exception(logger, f"Task {task.id!r} created without a durable anchor", e)
            return SyncOutcome(record=record, action="create", remote_id=task.id, error=e)
        if not task.id:
            error = IndeterminateTaskIdError(list_id=list_id)
            logger.warning("Create returned no task id", anchor=anchor)
            return SyncOutcome(record=record, action="create", anchor=anchor, error=error)
        logger.debug("Created task", anchor=anchor)
        return SyncOutcome(record=record, action="create", anchor=anchor, remote_id=task.id)
