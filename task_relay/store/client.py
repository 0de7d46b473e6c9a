"""
Task store client used by the engine and its collaborators.

The client is the only component that talks to a :class:`TaskStore`. It
adds the server timestamp to every write, validates records read back into
:class:`TaskRecord`, and converts backend failures into the
:mod:`task_relay.exceptions` hierarchy.

Example:
    >>> client = TaskStoreClient(InMemoryTaskStore(), LogAlertNotifier())
    >>> await client.update_atomically("taskA", {"status": "queued"})
    >>> record = await client.get_record("taskA")
    >>> record.status
    <TaskStatus.QUEUED: 'queued'>
"""

from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

import structlog
from pydantic import ValidationError

from task_relay.enums import TaskStatus
from task_relay.exceptions import RecordValidationError, StoreReadError, StoreWriteError, TaskRelayError
from task_relay.models.domain import TaskRecord
from task_relay.store.base import SERVER_TIMESTAMP, Document, TaskStore
from task_relay.utils.alerts import AlertNotifier, safe_notify
from task_relay.utils.retry import retry

log = structlog.get_logger(__name__)

UPDATED_AT_FIELD = "updated_at"

# Backend failures worth another attempt (connection, timeout and I/O errors)
RETRYABLE_ERRORS: tuple[type[Exception], ...] = (OSError,)


def _plain(fields: Mapping[str, Any]) -> Document:
    """Convert enum members to their values so records stay JSON-shaped."""
    return {key: value.value if isinstance(value, Enum) else value for key, value in fields.items()}


class TaskStoreClient:
    """Read and write task records.

    Args:
        store: Persistence backend.
        notifier: Receives developer alerts for exhausted retries.
        retry_attempts: Attempts for retried writes (``set_status``).
        retry_base_delay: Base backoff delay in seconds for retried writes.
    """

    def __init__(
        self,
        store: TaskStore,
        notifier: AlertNotifier,
        retry_attempts: int = 3,
        retry_base_delay: float = 1.0,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.retry_attempts = retry_attempts
        self.retry_base_delay = retry_base_delay

    async def close(self) -> None:
        """Release the backend."""
        await self.store.close()

    async def set_status(
        self,
        task_id: str,
        status: TaskStatus,
        extra_fields: Mapping[str, Any] | None = None,
    ) -> None:
        """Merge a status (and optional extra fields) into a record, with retries.

        Fields not mentioned are preserved. The write is retried with
        exponential backoff; merge writes are idempotent so retrying is safe.

        Args:
            task_id: Task identifier.
            status: New status.
            extra_fields: Additional fields merged in the same write.

        Raises:
            StoreWriteError: When every attempt failed. A developer alert is
                emitted before raising.
            TaskRelayError: Raised unchanged and without retrying when the
                backend refuses the write itself, e.g. ConfigurationError for
                an identifier the backend cannot store.
        """
        fields = {"status": status, **(extra_fields or {}), UPDATED_AT_FIELD: SERVER_TIMESTAMP}

        async def write() -> None:
            await self.store.merge(task_id, _plain(fields))

        try:
            await retry(
                write,
                attempts=self.retry_attempts,
                base_delay=self.retry_base_delay,
                exceptions=RETRYABLE_ERRORS,
            )
        except TaskRelayError:
            raise
        except Exception as e:
            safe_notify(self.notifier, f"Failed to set status for {task_id} to {status}", e)
            raise StoreWriteError(f"Failed to set status to {status}: {e}", task_id=task_id) from e

        log.info("task_status_set", task_id=task_id, status=str(status))

    async def update_atomically(self, task_id: str, fields: Mapping[str, Any]) -> None:
        """Write several fields to one record in a single atomic batch.

        All fields and a fresh server timestamp land together or none do.

        Args:
            task_id: Task identifier.
            fields: Fields to merge into the record.

        Raises:
            StoreWriteError: If the batch could not be committed.
        """
        batch = self.store.batch()
        batch.set(task_id, {**_plain(fields), UPDATED_AT_FIELD: SERVER_TIMESTAMP})
        try:
            await batch.commit()
        except Exception as e:
            raise StoreWriteError(f"Atomic update failed: {e}", task_id=task_id) from e

        log.debug("task_updated", task_id=task_id, fields=sorted(fields))

    async def get_outputs(self, parent_task_ids: Sequence[str]) -> list[str]:
        """Fetch the outputs of several tasks in one batched read.

        Missing records and records without an output contribute an empty
        string, so position ``i`` of the result always belongs to
        ``parent_task_ids[i]``.

        Raises:
            StoreReadError: If the batched read itself failed.
        """
        try:
            documents = await self.store.get_all(list(parent_task_ids))
        except Exception as e:
            raise StoreReadError(f"Batched output read failed: {e}", task_ids=parent_task_ids) from e

        outputs = []
        for task_id, document in zip(parent_task_ids, documents, strict=True):
            output = document.get("output") if document else None
            if output is None:
                log.warning("dependency_output_missing", task_id=task_id, record_exists=document is not None)
            outputs.append(output if isinstance(output, str) else ("" if output is None else str(output)))
        return outputs

    async def get_record(self, task_id: str) -> TaskRecord | None:
        """Read and validate one record.

        Returns:
            The record, or None when it does not exist.

        Raises:
            StoreReadError: If the read failed.
            RecordValidationError: If the stored data is not a valid record.
        """
        try:
            document = await self.store.get(task_id)
        except Exception as e:
            raise StoreReadError(f"Record read failed: {e}", task_ids=[task_id]) from e

        if document is None:
            return None

        try:
            return TaskRecord.model_validate(document)
        except ValidationError as e:
            raise RecordValidationError(f"Invalid task record: {e}", task_id=task_id) from e
