"""Dependency output resolution."""

from collections.abc import Sequence

import structlog

from task_relay.store.client import TaskStoreClient

log = structlog.get_logger(__name__)


class DependencyResolver:
    """Gather the recorded outputs of a task's parents.

    Position ``i`` of a resolved sequence is the output of parent ``i`` as
    declared, regardless of which parent finished first.
    """

    def __init__(self, store_client: TaskStoreClient) -> None:
        self.store_client = store_client

    async def resolve(self, parent_task_ids: Sequence[str]) -> list[str]:
        """Fetch parent outputs in declared order.

        An empty parent list returns ``[]`` without touching the store.
        Parents with no record or no output contribute ``""``.
        """
        if not parent_task_ids:
            return []

        outputs = await self.store_client.get_outputs(parent_task_ids)
        log.debug("dependencies_resolved", parents=list(parent_task_ids), count=len(outputs))
        return outputs
