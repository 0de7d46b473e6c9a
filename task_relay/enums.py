"""Enumerations for task-relay task lifecycle."""

from enum import Enum


class TaskStatus(str, Enum):
    """Lifecycle status of a task record.

    Records move forward only:
    (none) -> QUEUED -> PROCESSING -> FULFILLED | REJECTED
    """

    QUEUED = "queued"
    PROCESSING = "processing"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is expected from this status."""
        return self in (TaskStatus.FULFILLED, TaskStatus.REJECTED)
