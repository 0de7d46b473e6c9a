"""Child task triggering.

After a task is fulfilled its declared children are advanced from queued
to processing. Dispatch is best-effort per child: a failure on one child is
alerted and the remaining children are still dispatched. Dispatch never
touches the completed task's own record.

A child with several parents is dispatched once per completing parent. The
first parent finding it queued advances it; later parents find it no longer
queued and skip it. No check is made that every parent of the child has
completed.
"""

import structlog

from task_relay.enums import TaskStatus
from task_relay.exceptions import DispatchError, TaskRelayError
from task_relay.store.client import TaskStoreClient
from task_relay.utils.alerts import AlertNotifier, safe_notify

log = structlog.get_logger(__name__)


class ChildTriggerDispatcher:
    """Advance the queued children of a completed task."""

    def __init__(self, store_client: TaskStoreClient, notifier: AlertNotifier) -> None:
        self.store_client = store_client
        self.notifier = notifier

    async def dispatch(self, completed_task_id: str) -> list[str]:
        """Move every queued child of ``completed_task_id`` to processing.

        Children are read from the completed task's recorded ``next_tasks``
        and handled in that order. Children that are absent or in any
        status other than queued are skipped.

        Args:
            completed_task_id: Identifier of the task that just completed.

        Returns:
            Identifiers of the children this call advanced.
        """
        log.info("dispatch_started", task_id=completed_task_id)

        try:
            record = await self.store_client.get_record(completed_task_id)
        except TaskRelayError as e:
            log.error("dispatch_read_failed", task_id=completed_task_id, error=e.message)
            safe_notify(self.notifier, f"Error triggering child tasks for {completed_task_id}", e)
            return []

        if record is None or not record.next_tasks:
            log.info("dispatch_no_children", task_id=completed_task_id)
            return []

        advanced = []
        for child_task_id in record.next_tasks:
            try:
                if await self._advance_child(child_task_id):
                    advanced.append(child_task_id)
            except Exception as e:
                error = DispatchError(str(e), parent_task_id=completed_task_id, child_task_id=child_task_id)
                log.error(
                    "child_dispatch_failed",
                    task_id=completed_task_id,
                    child_task_id=child_task_id,
                    error=str(e),
                )
                safe_notify(self.notifier, f"Error triggering child task {child_task_id} of {completed_task_id}", error)

        log.info("dispatch_finished", task_id=completed_task_id, advanced=advanced)
        return advanced

    async def _advance_child(self, child_task_id: str) -> bool:
        child = await self.store_client.get_record(child_task_id)
        if child is None or child.status != TaskStatus.QUEUED:
            log.debug(
                "child_skipped",
                child_task_id=child_task_id,
                status=str(child.status) if child is not None and child.status is not None else None,
            )
            return False

        await self.store_client.update_atomically(child_task_id, {"status": TaskStatus.PROCESSING})
        log.info("child_triggered", child_task_id=child_task_id)
        return True
