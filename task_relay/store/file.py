"""
File-backed task store with atomic per-record writes.

Each task record is persisted as a JSON file named ``{task_id}.json`` in a
configurable directory::

    {
        "status": "fulfilled",
        "output": "TaskA completed",
        "next_tasks": ["taskB", "taskC"],
        "updated_at": "2024-01-15T11:45:00+00:00"
    }

Atomicity:
    Every record write goes to a temporary file that is then renamed over
    the record file. On POSIX systems the rename is atomic when both files
    are on the same filesystem, so readers see either the old or the new
    record, never a partial one.

Concurrency Model:
    Each record has its own asyncio lock so read-modify-write merges of one
    record are serialized within the process. Different records proceed
    concurrently. A batch touching several records is applied record by
    record; each record is atomic, the batch as a whole is not.

Example:
    >>> store = FileTaskStore(".task_relay/tasks")
    >>> await store.merge("taskA", {"status": "queued"})
    >>> await store.get("taskA")
    {'status': 'queued'}
"""

import asyncio
import json
import re
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, cast

import aiofiles
import structlog

from task_relay.exceptions import ConfigurationError
from task_relay.store.base import Document, TaskStore, apply_write

log = structlog.get_logger(__name__)

_TASK_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class FileTaskStore(TaskStore):
    """Persist task records as JSON files.

    Attributes:
        state_dir: Directory holding one JSON file per task.
    """

    def __init__(self, state_dir: str | Path) -> None:
        """Initialize the store, creating ``state_dir`` if needed.

        Args:
            state_dir: Directory for record files. Created with any missing
                parents.
        """
        self.state_dir = Path(state_dir)
        self.state_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, asyncio.Lock] = {}

    def _get_lock(self, task_id: str) -> asyncio.Lock:
        # No await between check and insert, so no meta-lock is needed
        if task_id not in self._locks:
            self._locks[task_id] = asyncio.Lock()
        return self._locks[task_id]

    def _get_record_path(self, task_id: str) -> Path:
        """Compute the file path of a task record.

        Raises:
            ConfigurationError: If the identifier cannot be used as a file name.
        """
        if not _TASK_ID_PATTERN.match(task_id):
            raise ConfigurationError(f"Task identifier not usable as a file name: {task_id!r}")
        return self.state_dir / f"{task_id}.json"

    async def _read(self, task_id: str) -> Document | None:
        path = self._get_record_path(task_id)
        if not path.exists():
            return None

        async with aiofiles.open(path) as f:
            content = await f.read()
        return cast(Document, json.loads(content))

    async def _write(self, task_id: str, record: Document) -> None:
        """Write a record through a temporary file and an atomic rename."""
        path = self._get_record_path(task_id)
        tmp_path = path.with_suffix(".tmp")

        async with aiofiles.open(tmp_path, "w") as f:
            await f.write(json.dumps(record, indent=2, default=_json_default))

        tmp_path.replace(path)

    async def get(self, task_id: str) -> Document | None:
        return await self._read(task_id)

    async def get_all(self, task_ids: Sequence[str]) -> list[Document | None]:
        return list(await asyncio.gather(*(self._read(task_id) for task_id in task_ids)))

    async def commit(self, writes: Mapping[str, Mapping[str, Any]]) -> None:
        now = datetime.now(UTC)
        for task_id, fields in writes.items():
            async with self._get_lock(task_id):
                record = await self._read(task_id) or {}
                await self._write(task_id, apply_write(record, fields, now))

        log.debug("records_committed", task_ids=list(writes), state_dir=str(self.state_dir))

    async def close(self) -> None:
        """Drop the per-record locks."""
        self._locks.clear()

    async def list_task_ids(self) -> list[str]:
        """Identifiers of all stored records, sorted."""
        return sorted(path.stem for path in self.state_dir.glob("*.json"))
