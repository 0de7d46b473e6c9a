"""In-process task store.

Records live in a dictionary owned by the store instance. A commit builds
every updated record first and publishes them in one step, without an
``await`` in between, so no coroutine can observe part of a commit.
"""

import asyncio
import copy
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

import structlog

from task_relay.store.base import Document, TaskStore, apply_write

log = structlog.get_logger(__name__)


class InMemoryTaskStore(TaskStore):
    """Task store backed by a dictionary.

    Args:
        records: Optional initial records keyed by task identifier.
        latency: Seconds to suspend before each operation, simulating a
            remote store so concurrent invocations interleave. Zero means
            operations complete without suspending.
    """

    def __init__(self, records: Mapping[str, Mapping[str, Any]] | None = None, latency: float = 0.0) -> None:
        self._records: dict[str, Document] = {
            task_id: dict(record) for task_id, record in (records or {}).items()
        }
        self.latency = latency
        self.read_count = 0
        self.commit_count = 0

    async def _io(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)

    async def get(self, task_id: str) -> Document | None:
        await self._io()
        self.read_count += 1
        record = self._records.get(task_id)
        return copy.deepcopy(record) if record is not None else None

    async def get_all(self, task_ids: Sequence[str]) -> list[Document | None]:
        await self._io()
        self.read_count += 1
        return [copy.deepcopy(self._records[t]) if t in self._records else None for t in task_ids]

    async def commit(self, writes: Mapping[str, Mapping[str, Any]]) -> None:
        await self._io()
        now = datetime.now(UTC)
        staged = {}
        for task_id, fields in writes.items():
            staged[task_id] = apply_write(self._records.get(task_id, {}), fields, now)

        self._records.update(staged)
        self.commit_count += 1
        log.debug("records_committed", task_ids=list(staged))

    def snapshot(self) -> dict[str, Document]:
        """Deep copy of every stored record, for inspection."""
        return copy.deepcopy(self._records)
