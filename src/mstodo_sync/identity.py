"""Identity table: durable mapping from anchor tokens to remote task ids.

The table is append-only. Keys are never removed and a key bound to a
non-empty id is never rebound. New anchors come only from
:meth:`IdentityTable.allocate`, which bumps the counter, inserts the entry
and commits it in one synchronous step, so no other coroutine can observe
or reuse the same counter value.

Example:
    >>> table = IdentityTable()
    >>> anchor = table.allocate("AAMkAG...")
    >>> table.resolve(anchor)
    'AAMkAG...'
"""

from __future__ import annotations

import random
from collections.abc import Callable, Mapping
from typing import Any

from mstodo_sync.errors import IdentityIntegrityError
from mstodo_sync.logging import get_logger

__all__ = ["EMPTY_ID", "IdentityTable", "compose_anchor"]

logger = get_logger("identity")

# Bound to an anchor whose create call produced no remote id.
EMPTY_ID = ""

RANDOM_ALPHABET = "0123456789abcdefghij"
RANDOM_LENGTH = 4
COUNTER_WIDTH = 5


def compose_anchor(random_part: str, counter: int) -> str:
    """``<random><zero-padded counter>``, e.g. ``("b2h0", 7) -> "b2h000007"``."""
    return f"{random_part}{counter:0{COUNTER_WIDTH}d}"


class IdentityTable:
    """Anchor -> remote id lookup plus the allocation counter.

    Args:
        lookup: Existing entries (copied).
        counter: Last allocated counter value.
        on_commit: Called after every allocation with the table itself. It
            must flush the table to durable storage before returning.
        rng: Source of the random anchor component.
    """

    def __init__(
        self,
        lookup: Mapping[str, str] | None = None,
        counter: int = 0,
        *,
        on_commit: Callable[[IdentityTable], None] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._lookup: dict[str, str] = dict(lookup or {})
        self._counter = int(counter)
        self._on_commit = on_commit
        self._rng = rng or random.Random()

    @property
    def counter(self) -> int:
        return self._counter

    @property
    def lookup(self) -> dict[str, str]:
        """A copy of the current entries."""
        return dict(self._lookup)

    def __len__(self) -> int:
        return len(self._lookup)

    def __contains__(self, anchor: object) -> bool:
        return anchor in self._lookup

    def resolve(self, anchor: str) -> str | None:
        """Return the remote id for ``anchor``; None when never allocated.

        The empty-id sentinel is returned as ``""`` so callers can tell a
        failed earlier create apart from an unknown anchor.
        """
        return self._lookup.get(anchor)

    def require(self, anchor: str) -> str:
        """Like :meth:`resolve` but raises when no usable id is bound."""
        task_id = self._lookup.get(anchor)
        if task_id is None:
            raise IdentityIntegrityError(
                f"Anchor ^{anchor} is not in the identity table", anchor=anchor
            )
        if task_id == EMPTY_ID:
            raise IdentityIntegrityError(
                f"Anchor ^{anchor} has no remote task (its create did not return an id)",
                anchor=anchor,
            )
        return task_id

    def allocate(self, remote_id: str | None) -> str:
        """Allocate a fresh anchor bound to ``remote_id`` and commit it.

        A missing id is stored as :data:`EMPTY_ID`. Nothing in here awaits,
        so the counter bump and the insert happen before control can yield.

        Raises:
            IdentityIntegrityError: The commit hook failed. The counter and
                the entry are rolled back, so the anchor was never allocated.
        """
        self._counter += 1
        anchor = compose_anchor(self._random_part(), self._counter)
        while anchor in self._lookup:
            # Only possible with keys written by something other than this counter.
            anchor = compose_anchor(self._random_part(), self._counter)
        self._lookup[anchor] = remote_id or EMPTY_ID
        if self._on_commit is not None:
            try:
                self._on_commit(self)
            except Exception as e:
                del self._lookup[anchor]
                self._counter -= 1
                raise IdentityIntegrityError(
                    f"Could not persist anchor ^{anchor} for remote task {remote_id!r}: {e}",
                    anchor=anchor,
                ) from e
        logger.debug("Allocated anchor", anchor=anchor, counter=self._counter)
        return anchor

    def _random_part(self) -> str:
        return "".join(self._rng.choices(RANDOM_ALPHABET, k=RANDOM_LENGTH))

    def to_dict(self) -> dict[str, Any]:
        """Persisted layout, matching the settings file keys."""
        return {"taskIdLookup": dict(self._lookup), "taskIdIndex": self._counter}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], **kwargs: Any) -> IdentityTable:
        return cls(
            lookup=data.get("taskIdLookup") or {},
            counter=data.get("taskIdIndex") or 0,
            **kwargs,
        )
