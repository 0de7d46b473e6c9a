"""
Task orchestration engine.

The engine drives one task invocation through its state machine::

    queued -> processing -> fulfilled
                         -> rejected

Each invocation is started by an external record-created event and runs
these steps strictly in sequence:

1. Write ``status=queued``, then ``status=processing`` (two separate atomic
   writes, so monitors can see the acknowledged-but-not-computing state).
2. Resolve the ordered outputs of the declared parents.
3. Run the task handler with those outputs.
4. Write ``status=fulfilled``, the output and the declared children in one
   atomic write that also drops any error left by an earlier run, then
   dispatch the children.
5. On any failure in steps 2-4, write ``status=rejected`` with the error
   message (dropping any earlier output), alert, and re-raise.

Concurrent invocations for the same task identifier are not excluded. All
mutations go through single-record atomic writes; no in-process lock is
taken.

Example:
    >>> engine = TaskOrchestrator(client, LogAlertNotifier())
    >>> trigger = engine.wrap(task_b, parents=["taskA"], children=["taskD"])
    >>> output = await trigger(snapshot, TriggerContext.for_task("taskB"))
"""

from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import structlog

from task_relay.engine.dispatcher import ChildTriggerDispatcher
from task_relay.engine.handlers import TaskFunction, TaskHandler, as_handler
from task_relay.engine.resolver import DependencyResolver
from task_relay.enums import TaskStatus
from task_relay.exceptions import ConfigurationError, TaskExecutionError, TaskRelayError
from task_relay.models.domain import TaskSnapshot, TriggerContext
from task_relay.store.base import DELETE_FIELD
from task_relay.store.client import TaskStoreClient
from task_relay.utils.alerts import AlertNotifier, safe_notify

log = structlog.get_logger(__name__)

TriggerFunction = Callable[[TaskSnapshot, TriggerContext], Awaitable[str]]


class TaskOrchestrator:
    """Run task invocations against a task store.

    All collaborators are injected so an in-memory store and a recording
    notifier can stand in for production ones.

    Args:
        store_client: Client for the task store.
        notifier: Receives developer alerts.
        resolver: Dependency resolver. Built from ``store_client`` if omitted.
        dispatcher: Child dispatcher. Built from ``store_client`` if omitted.
    """

    def __init__(
        self,
        store_client: TaskStoreClient,
        notifier: AlertNotifier,
        resolver: DependencyResolver | None = None,
        dispatcher: ChildTriggerDispatcher | None = None,
    ) -> None:
        self.store_client = store_client
        self.notifier = notifier
        self.resolver = resolver or DependencyResolver(store_client)
        self.dispatcher = dispatcher or ChildTriggerDispatcher(store_client, notifier)

    def wrap(
        self,
        handler: TaskHandler | TaskFunction,
        parents: Sequence[str] = (),
        children: Sequence[str] = (),
    ) -> TriggerFunction:
        """Wrap task logic into a trigger function bound to its graph position.

        Args:
            handler: Task logic, a :class:`TaskHandler` or a plain function
                taking ``(snapshot, context, dependency_outputs)``.
            parents: Parent task identifiers whose outputs are passed in,
                in this order.
            children: Child task identifiers advanced after success.

        Returns:
            An async ``(snapshot, context) -> str`` function to be invoked
            once per record-created event.
        """
        task_handler = as_handler(handler)
        parent_ids = list(parents)
        child_ids = list(children)

        async def trigger(snapshot: TaskSnapshot, context: TriggerContext) -> str:
            return await self.execute(task_handler, snapshot, context, parent_ids, child_ids)

        trigger.__name__ = f"trigger_{getattr(task_handler, '__name__', 'task')}"
        return trigger

    async def execute(
        self,
        handler: TaskHandler,
        snapshot: TaskSnapshot,
        context: TriggerContext,
        parents: Sequence[str] = (),
        children: Sequence[str] = (),
    ) -> str:
        """Run one task invocation through the state machine.

        Returns:
            The output produced by the handler.

        Raises:
            ConfigurationError: If the context carries no task identifier.
            StoreWriteError: If the initial status writes fail.
            Exception: Whatever failed in dependency resolution, the handler
                or the fulfilled write, after the task was marked rejected.
        """
        task_id = context.task_id
        if not task_id:
            raise ConfigurationError("Task ID is not available in the trigger context")

        bound_log = log.bind(task_id=task_id)

        try:
            await self.store_client.update_atomically(task_id, {"status": TaskStatus.QUEUED})
            await self.store_client.update_atomically(task_id, {"status": TaskStatus.PROCESSING})
        except TaskRelayError as e:
            bound_log.error("task_initialization_failed", error=e.message)
            safe_notify(self.notifier, f"Task {task_id} could not be initialized", e)
            raise

        bound_log.info("task_processing", parents=list(parents), children=list(children))

        try:
            dependency_outputs = await self.resolver.resolve(parents) if parents else []
            result = await handler.run(snapshot, context, dependency_outputs)
            if not isinstance(result, str):
                raise TaskExecutionError(
                    f"Task logic returned {type(result).__name__}, expected str",
                    task_id=task_id,
                )

            fields: dict[str, Any] = {"status": TaskStatus.FULFILLED, "output": result, "error": DELETE_FIELD}
            if children:
                fields["next_tasks"] = list(children)
            await self.store_client.update_atomically(task_id, fields)
        except Exception as e:
            await self._reject(task_id, e)
            raise

        bound_log.info("task_fulfilled", output_length=len(result))

        await self.dispatcher.dispatch(task_id)
        return result

    async def _reject(self, task_id: str, error: Exception) -> None:
        """Record the rejected terminal state and alert."""
        try:
            await self.store_client.update_atomically(
                task_id, {"status": TaskStatus.REJECTED, "error": str(error), "output": DELETE_FIELD}
            )
        except TaskRelayError as write_error:
            log.error("task_rejection_write_failed", task_id=task_id, error=write_error.message)
            safe_notify(self.notifier, f"Task {task_id} failed and its rejection was not recorded", write_error)

        log.error("task_rejected", task_id=task_id, error=str(error), error_type=type(error).__name__)
        safe_notify(self.notifier, f"Task {task_id} failed", error)
