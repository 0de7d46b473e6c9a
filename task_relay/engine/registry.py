"""Static task graph configuration.

The registry holds, per task identifier, the task logic together with its
declared parents and children. The graph is configuration supplied by the
caller; the engine never derives it from stored records.
"""

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field

import structlog

from task_relay.engine.handlers import TaskFunction, TaskHandler, as_handler
from task_relay.exceptions import ConfigurationError

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TaskDefinition:
    """One node of the task graph.

    Attributes:
        task_id: Identifier of the task record.
        handler: Task logic.
        parents: Tasks whose outputs the handler receives, in order.
        children: Tasks advanced when this task is fulfilled, in order.
    """

    task_id: str
    handler: TaskHandler
    parents: tuple[str, ...] = field(default_factory=tuple)
    children: tuple[str, ...] = field(default_factory=tuple)


class TaskRegistry:
    """Task definitions keyed by identifier, kept in declaration order."""

    def __init__(self) -> None:
        self._definitions: dict[str, TaskDefinition] = {}

    def register(
        self,
        task_id: str,
        handler: TaskHandler | TaskFunction,
        parents: Sequence[str] = (),
        children: Sequence[str] = (),
    ) -> TaskDefinition:
        """Add a task to the graph.

        Raises:
            ConfigurationError: If the identifier is empty or already registered.
        """
        if not task_id:
            raise ConfigurationError("Task identifier must not be empty")
        if task_id in self._definitions:
            raise ConfigurationError(f"Task already registered: {task_id}")

        definition = TaskDefinition(
            task_id=task_id,
            handler=as_handler(handler),
            parents=tuple(parents),
            children=tuple(children),
        )
        self._definitions[task_id] = definition
        log.debug("task_registered", task_id=task_id, parents=list(parents), children=list(children))
        return definition

    def task(
        self,
        task_id: str,
        parents: Sequence[str] = (),
        children: Sequence[str] = (),
    ) -> Callable[[TaskFunction], TaskFunction]:
        """Decorator registering a function as the logic of ``task_id``.

        Example:
            >>> @registry.task("taskB", parents=["taskA"], children=["taskD"])
            ... async def task_b(snapshot, context, outputs):
            ...     return " ".join(outputs) + " TaskB completed"
        """

        def decorator(func: TaskFunction) -> TaskFunction:
            self.register(task_id, func, parents=parents, children=children)
            return func

        return decorator

    def get(self, task_id: str) -> TaskDefinition:
        """Look up a task definition.

        Raises:
            ConfigurationError: If the task is not registered.
        """
        try:
            return self._definitions[task_id]
        except KeyError:
            raise ConfigurationError(f"Unknown task: {task_id}") from None

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._definitions

    def __iter__(self) -> Iterator[TaskDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)
