"""Local delivery of record-created events.

In production, whatever hosts the engine invokes a task's trigger function
when that task's record is created. ``LocalTriggerHost`` plays that role in
process, for the CLI demo and for tests: creating a record through the host
delivers the creation event to the registered task.
"""

import uuid
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from task_relay.engine.orchestrator import TaskOrchestrator, TriggerFunction
from task_relay.engine.registry import TaskRegistry
from task_relay.enums import TaskStatus
from task_relay.models.domain import TaskSnapshot, TriggerContext
from task_relay.store.client import TaskStoreClient

log = structlog.get_logger(__name__)


class LocalTriggerHost:
    """Deliver creation events for registered tasks to the engine."""

    def __init__(
        self,
        registry: TaskRegistry,
        orchestrator: TaskOrchestrator,
        store_client: TaskStoreClient,
    ) -> None:
        self.registry = registry
        self.orchestrator = orchestrator
        self.store_client = store_client
        self._triggers: dict[str, TriggerFunction] = {}

    def _trigger_for(self, task_id: str) -> TriggerFunction:
        if task_id not in self._triggers:
            definition = self.registry.get(task_id)
            self._triggers[task_id] = self.orchestrator.wrap(
                definition.handler, parents=definition.parents, children=definition.children
            )
        return self._triggers[task_id]

    async def create(self, task_id: str, data: Mapping[str, Any] | None = None) -> str | None:
        """Create a task record and deliver its creation event.

        Args:
            task_id: Identifier of the record to create.
            data: Initial record fields written by the creator.

        Returns:
            The task output, or None if no task is registered under
            ``task_id`` (the record is still written).
        """
        await self.store_client.update_atomically(task_id, dict(data or {}))
        if task_id not in self.registry:
            log.warning("created_record_has_no_task", task_id=task_id)
            return None

        record = await self.store_client.get_record(task_id)
        snapshot = record.to_document() if record is not None else None
        return await self.fire(task_id, snapshot)

    async def fire(self, task_id: str, snapshot: TaskSnapshot = None) -> str:
        """Deliver a creation event for ``task_id`` without writing anything first.

        Raises:
            ConfigurationError: If no task is registered under ``task_id``.
        """
        context = TriggerContext.for_task(task_id, event_id=uuid.uuid4().hex)
        log.info("trigger_delivered", task_id=task_id, event_id=context.event_id)
        return await self._trigger_for(task_id)(snapshot, context)

    async def declare(self, task_ids: Iterable[str]) -> None:
        """Seed records as queued without delivering creation events."""
        for task_id in task_ids:
            await self.store_client.update_atomically(task_id, {"status": TaskStatus.QUEUED})
