"""Task handler capability.

A task handler is the caller-supplied business logic of one task. It
receives the creation snapshot, the trigger context and the ordered outputs
of the task's parents, and returns the task's output string or raises.
"""

import inspect
from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from task_relay.models.domain import TaskSnapshot, TriggerContext

TaskFunction = Callable[[TaskSnapshot, TriggerContext, list[str]], Any]


@runtime_checkable
class TaskHandler(Protocol):
    """Anything with an async ``run`` producing the task output."""

    async def run(
        self,
        snapshot: TaskSnapshot,
        context: TriggerContext,
        dependency_outputs: Sequence[str],
    ) -> str: ...


class FunctionTaskHandler:
    """Adapt a plain function (sync or async) to :class:`TaskHandler`."""

    def __init__(self, func: TaskFunction) -> None:
        self.func = func
        self.__name__ = getattr(func, "__name__", type(func).__name__)

    async def run(
        self,
        snapshot: TaskSnapshot,
        context: TriggerContext,
        dependency_outputs: Sequence[str],
    ) -> Any:
        result = self.func(snapshot, context, list(dependency_outputs))
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"FunctionTaskHandler({self.__name__})"


def as_handler(obj: TaskHandler | TaskFunction) -> TaskHandler:
    """Return ``obj`` as a task handler.

    Objects whose class defines ``run`` are used as they are, even when
    they are also callable. Other callables are wrapped in
    :class:`FunctionTaskHandler`.

    Raises:
        TypeError: If ``obj`` is a class, or neither callable nor a handler.
    """
    if isinstance(obj, type):
        raise TypeError(f"Expected a task handler instance, got class {obj.__name__}")
    if isinstance(obj, TaskHandler) and callable(getattr(type(obj), "run", None)):
        return obj
    if callable(obj):
        return FunctionTaskHandler(obj)
    raise TypeError(f"Expected a task handler or callable, got {type(obj).__name__}")
