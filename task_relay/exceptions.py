"""Custom exception hierarchy for the task-relay orchestration engine.

This module defines a structured exception hierarchy that lets callers
tell configuration mistakes, persistence failures and task failures apart
without inspecting error strings.

Exception Hierarchy:
    TaskRelayError (base)
    ├── ConfigurationError
    ├── StoreError
    │   ├── StoreReadError
    │   ├── StoreWriteError
    │   └── RecordValidationError
    ├── TaskExecutionError
    └── DispatchError

Example Usage:
    >>> from task_relay.exceptions import StoreWriteError
    >>> try:
    ...     await client.set_status("taskA", TaskStatus.QUEUED)
    ... except StoreWriteError as e:
    ...     log.error("status_write_failed", task_id=e.task_id, error=e.message)
"""

from collections.abc import Sequence


class TaskRelayError(Exception):
    """Base exception for all task-relay errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(TaskRelayError):
    """Configuration-related errors.

    Raised when settings are invalid or missing, when a trigger context
    carries no task identifier, or when a task is not registered.

    Examples:
        - Configuration file not found
        - Invalid YAML syntax
        - Trigger context without a task identifier
        - Unknown task identifier in the task registry
    """

    pass


class StoreError(TaskRelayError):
    """Base class for task store failures."""

    pass


class StoreReadError(StoreError):
    """A read against the task store failed.

    Attributes:
        task_ids: Identifiers of the records the failed read targeted
    """

    def __init__(self, message: str, task_ids: Sequence[str] = ()) -> None:
        self.task_ids = list(task_ids)
        full_message = message
        if self.task_ids:
            full_message = f"{message} (tasks: {', '.join(self.task_ids)})"
        super().__init__(full_message)
        self.message = message


class StoreWriteError(StoreError):
    """A write against the task store failed (after retries, where retried).

    The record is left in its last successfully written state.

    Attributes:
        task_id: Identifier of the record the write targeted
    """

    def __init__(self, message: str, task_id: str | None = None) -> None:
        self.task_id = task_id
        full_message = message if task_id is None else f"{message} (task: {task_id})"
        super().__init__(full_message)
        self.message = message


class RecordValidationError(StoreError):
    """A stored record does not match the task record schema."""

    def __init__(self, message: str, task_id: str | None = None) -> None:
        self.task_id = task_id
        full_message = message if task_id is None else f"{message} (task: {task_id})"
        super().__init__(full_message)
        self.message = message


class TaskExecutionError(TaskRelayError):
    """Task logic produced an unusable result.

    Raised by the engine itself, for instance when a handler returns
    something other than a string. Failures raised by handlers are
    re-raised unchanged and are not wrapped in this type.

    Attributes:
        task_id: Identifier of the task being executed
    """

    def __init__(self, message: str, task_id: str | None = None) -> None:
        self.task_id = task_id
        full_message = message if task_id is None else f"{message} (task: {task_id})"
        super().__init__(full_message)
        self.message = message


class DispatchError(TaskRelayError):
    """Advancing one child task failed.

    Dispatch errors are contained by the dispatcher: they are alerted and
    never abort dispatch of sibling children.

    Attributes:
        parent_task_id: The completed task whose children were dispatched
        child_task_id: The child that could not be advanced
    """

    def __init__(self, message: str, parent_task_id: str, child_task_id: str) -> None:
        self.parent_task_id = parent_task_id
        self.child_task_id = child_task_id
        super().__init__(f"{message} (parent: {parent_task_id}, child: {child_task_id})")
        self.message = message
