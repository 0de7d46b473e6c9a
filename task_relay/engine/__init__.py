"""Task orchestration engine.

Key Components:
    - TaskOrchestrator: Drives one task invocation through its state machine
    - DependencyResolver: Ordered parent-output lookup
    - ChildTriggerDispatcher: Advances queued children of a completed task
    - TaskRegistry: Static graph configuration (handlers, parents, children)
    - LocalTriggerHost: In-process delivery of record-created events

Example:
    >>> from task_relay.engine import TaskOrchestrator
    >>> engine = TaskOrchestrator(store_client, notifier)
    >>> trigger = engine.wrap(handler, parents=["taskA"], children=["taskD"])
"""

from task_relay.engine.dispatcher import ChildTriggerDispatcher
from task_relay.engine.handlers import FunctionTaskHandler, TaskHandler, as_handler
from task_relay.engine.host import LocalTriggerHost
from task_relay.engine.orchestrator import TaskOrchestrator
from task_relay.engine.registry import TaskDefinition, TaskRegistry
from task_relay.engine.resolver import DependencyResolver

__all__ = [
    "ChildTriggerDispatcher",
    "DependencyResolver",
    "FunctionTaskHandler",
    "LocalTriggerHost",
    "TaskDefinition",
    "TaskHandler",
    "TaskOrchestrator",
    "TaskRegistry",
    "as_handler",
]
