"""
Domain models for the task-relay engine.

This module contains the persisted task record and the context objects that
flow through a single task invocation. The task record is the only shared
mutable state in the system; it is validated whenever it crosses the store
client boundary so the engine never works with an open-ended mapping.

Example:
    A fulfilled record as persisted::

        record = TaskRecord(
            status=TaskStatus.FULFILLED,
            output="TaskA completed",
            next_tasks=["taskB", "taskC"],
            updated_at=datetime.now(UTC),
        )
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from task_relay.enums import TaskStatus

TaskSnapshot = dict[str, Any] | None
"""Record data as it was when the creation event fired (None when unknown)."""


class TaskRecord(BaseModel):
    """Persisted state of one task execution.

    Fields other than the ones declared here (written by whoever created the
    record) are preserved and available through ``model_extra``.

    Attributes:
        status: Lifecycle status. Absent only on a freshly created record
            the engine has not written to yet.
        output: Result of the task logic. Set on the fulfilled transition.
        next_tasks: Declared children, set on the fulfilled transition when
            the task declares any.
        error: Failure message. Set on the rejected transition.
        updated_at: Store-assigned timestamp of the last write.
    """

    model_config = ConfigDict(extra="allow")

    status: TaskStatus | None = None
    output: str | None = None
    next_tasks: list[str] | None = None
    error: str | None = None
    updated_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        """Check if the record reached fulfilled or rejected."""
        return self.status is not None and self.status.is_terminal

    def to_document(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible mapping without unset optional fields."""
        return self.model_dump(mode="json", exclude_none=True)


@dataclass
class TriggerContext:
    """Execution context delivered with a record-created event.

    Attributes:
        params: Event parameters. The task identifier is carried under
            ``task_id``.
        event_id: Optional identifier of the delivering event.
        timestamp: When the event was emitted.
    """

    params: dict[str, str] = field(default_factory=dict)
    event_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def task_id(self) -> str | None:
        return self.params.get("task_id") or None

    @classmethod
    def for_task(cls, task_id: str, event_id: str | None = None) -> "TriggerContext":
        """Build a context for the given task identifier."""
        return cls(params={"task_id": task_id}, event_id=event_id)
