"""Five-task example graph.

::

    taskA -> taskB -> taskD -> taskE
          -> taskC ----------> taskE

Each task appends its own message to the space-joined outputs of its
parents. taskE has two parents and is dispatched by whichever of taskC and
taskD completes first.
"""

from collections.abc import Sequence

import structlog

from task_relay.engine.host import LocalTriggerHost
from task_relay.engine.registry import TaskRegistry
from task_relay.models.domain import TaskSnapshot, TriggerContext

log = structlog.get_logger(__name__)

EXAMPLE_TASK_IDS = ("taskA", "taskB", "taskC", "taskD", "taskE")


def build_example_registry() -> TaskRegistry:
    """Register the five example tasks."""
    registry = TaskRegistry()

    @registry.task("taskA", parents=[], children=["taskB", "taskC"])
    async def task_a(snapshot: TaskSnapshot, context: TriggerContext, outputs: Sequence[str]) -> str:
        log.info("executing_task", task_id="taskA")
        return f"{' '.join(outputs)}TaskA completed"

    @registry.task("taskB", parents=["taskA"], children=["taskD"])
    async def task_b(snapshot: TaskSnapshot, context: TriggerContext, outputs: Sequence[str]) -> str:
        log.info("executing_task", task_id="taskB")
        return f"{' '.join(outputs)} TaskB completed"

    @registry.task("taskC", parents=["taskA"], children=["taskE"])
    async def task_c(snapshot: TaskSnapshot, context: TriggerContext, outputs: Sequence[str]) -> str:
        log.info("executing_task", task_id="taskC")
        return f"{' '.join(outputs)} TaskC completed"

    @registry.task("taskD", parents=["taskB"], children=["taskE"])
    async def task_d(snapshot: TaskSnapshot, context: TriggerContext, outputs: Sequence[str]) -> str:
        log.info("executing_task", task_id="taskD")
        return f"{' '.join(outputs)} TaskD completed"

    @registry.task("taskE", parents=["taskC", "taskD"], children=[])
    async def task_e(snapshot: TaskSnapshot, context: TriggerContext, outputs: Sequence[str]) -> str:
        log.info("executing_task", task_id="taskE")
        return f"{' '.join(outputs)} TaskE completed"

    return registry


async def run_example(host: LocalTriggerHost) -> dict[str, str]:
    """Run the example graph from the root.

    Downstream records are declared as queued first so taskA's completion
    can dispatch them; each remaining task then receives its creation event
    in declaration order.

    Returns:
        Output of every task, keyed by identifier.
    """
    root, *downstream = EXAMPLE_TASK_IDS
    await host.declare(downstream)

    outputs = {}
    root_output = await host.create(root)
    if root_output is not None:
        outputs[root] = root_output
    for task_id in downstream:
        outputs[task_id] = await host.fire(task_id)
    return outputs
