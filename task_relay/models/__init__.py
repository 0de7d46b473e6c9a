"""Domain models for task records and trigger contexts.

Example:
    >>> from task_relay.models import TaskRecord, TriggerContext
    >>> context = TriggerContext.for_task("taskA")
    >>> context.task_id
    'taskA'
"""

from task_relay.models.domain import TaskRecord, TaskSnapshot, TriggerContext

__all__ = ["TaskRecord", "TaskSnapshot", "TriggerContext"]
