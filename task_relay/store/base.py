"""
Abstract persistence primitives for task records.

A task store keeps one mapping per task identifier and offers exactly the
semantics the engine relies on:

- single and batched reads (the batched read is one call and preserves the
  order of the requested identifiers)
- merge writes that keep fields the write does not mention
- write batches whose writes land together or not at all
- a store-assigned timestamp, requested by placing ``SERVER_TIMESTAMP`` in a
  write
- field removal, requested by placing ``DELETE_FIELD`` in a write

Example:
    >>> batch = store.batch()
    >>> batch.set("taskA", {"status": "fulfilled", "updated_at": SERVER_TIMESTAMP})
    >>> await batch.commit()
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

Document = dict[str, Any]


class _FieldSentinel:
    """Write value interpreted by the store when a write is committed."""

    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name


SERVER_TIMESTAMP = _FieldSentinel("SERVER_TIMESTAMP")
DELETE_FIELD = _FieldSentinel("DELETE_FIELD")


def resolve_server_values(fields: Mapping[str, Any], now: datetime | None = None) -> Document:
    """Replace ``SERVER_TIMESTAMP`` sentinels with a concrete timestamp.

    ``DELETE_FIELD`` values are left in place for :func:`apply_write`.
    """
    now = now or datetime.now(UTC)
    return {key: (now if value is SERVER_TIMESTAMP else value) for key, value in fields.items()}


def apply_write(record: Mapping[str, Any], fields: Mapping[str, Any], now: datetime | None = None) -> Document:
    """Merge ``fields`` into a copy of ``record``.

    Timestamps are resolved and keys whose value is ``DELETE_FIELD`` are
    removed from the result.
    """
    merged = dict(record)
    for key, value in resolve_server_values(fields, now).items():
        if value is DELETE_FIELD:
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged


class WriteBatch:
    """Collects merge writes and commits them as one atomic unit.

    Several ``set`` calls for the same task are merged in call order.
    """

    def __init__(self, store: "TaskStore") -> None:
        self._store = store
        self._writes: dict[str, Document] = {}
        self._committed = False

    def set(self, task_id: str, fields: Mapping[str, Any]) -> "WriteBatch":
        if self._committed:
            raise RuntimeError("Write batch already committed")
        self._writes.setdefault(task_id, {}).update(fields)
        return self

    @property
    def writes(self) -> dict[str, Document]:
        return {task_id: dict(fields) for task_id, fields in self._writes.items()}

    def __len__(self) -> int:
        return len(self._writes)

    async def commit(self) -> None:
        if self._committed:
            raise RuntimeError("Write batch already committed")
        self._committed = True
        if self._writes:
            await self._store.commit(self.writes)


class TaskStore(ABC):
    """Abstract base class for task record storage backends.

    Implementations decide how atomicity is achieved; callers only rely on
    no reader ever observing a partially applied commit of a single record.
    """

    @abstractmethod
    async def get(self, task_id: str) -> Document | None:
        """Read one record.

        Args:
            task_id: Task identifier.

        Returns:
            A copy of the stored mapping, or None if no record exists.
        """
        pass

    @abstractmethod
    async def get_all(self, task_ids: Sequence[str]) -> list[Document | None]:
        """Read several records in one call.

        Args:
            task_ids: Task identifiers, duplicates allowed.

        Returns:
            One entry per requested identifier, in the same order. Missing
            records are None.
        """
        pass

    @abstractmethod
    async def commit(self, writes: Mapping[str, Mapping[str, Any]]) -> None:
        """Apply merge writes for one or more records atomically.

        Args:
            writes: Fields to merge, keyed by task identifier. Values equal
                to ``SERVER_TIMESTAMP`` are replaced by the commit time;
                keys set to ``DELETE_FIELD`` are removed from the record.
        """
        pass

    def batch(self) -> WriteBatch:
        """Start a new write batch bound to this store."""
        return WriteBatch(self)

    async def merge(self, task_id: str, fields: Mapping[str, Any]) -> None:
        """Merge fields into a single record atomically."""
        await self.commit({task_id: fields})

    async def close(self) -> None:
        """Release backend resources. Most backends hold none."""
        pass
