"""Retry utilities for handling transient failures.

Provides a retry helper and decorator for async operations with
exponential backoff. The task store client wraps its retried writes with
these helpers so a briefly unavailable backend does not fail a task.

Key Features:
    - Exponential backoff doubling from a configurable base delay
    - Configurable exception filtering (only retry specific exceptions)
    - Maximum attempt limiting
    - Structured logging of retry attempts

Key Exports:
    retry: Run a zero-argument coroutine factory with retries.
    async_retry: Decorator for adding retry logic to async functions.

Example:
    >>> from task_relay.utils.retry import retry
    >>>
    >>> result = await retry(lambda: store.merge("taskA", fields), attempts=3, base_delay=1.0)

Thread Safety:
    Both helpers are stateless and safe for concurrent use.
    Each call maintains its own retry state.

Backoff Formula:
    delay = base_delay * 2 ** attempt_index (attempt_index is 0-based)
    For base_delay=1.0: 1s, 2s, 4s, ...

Warning:
    Retrying re-runs the operation from scratch. Callers must make sure the
    wrapped operation is idempotent (merge writes are).
"""

import asyncio
import functools
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")


def backoff_delay(base_delay: float, attempt_index: int) -> float:
    """Delay to wait after the failed attempt with the given 0-based index."""
    return base_delay * 2**attempt_index


async def retry(
    operation: Callable[[], Awaitable[T]],
    attempts: int = 3,
    base_delay: float = 1.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> T:
    """Invoke ``operation`` until it succeeds or ``attempts`` runs out.

    Args:
        operation: Zero-argument callable returning an awaitable. It is
            called once per attempt so each attempt gets a fresh coroutine.
        attempts: Maximum number of attempts. Must be at least 1.
        base_delay: Delay in seconds after the first failure. Doubles
            after every further failure.
        exceptions: Exception types that trigger a retry. Anything else
            propagates immediately.

    Returns:
        The result of the first successful attempt.

    Raises:
        ValueError: If ``attempts`` is less than 1.
        Exception: The last failure once all attempts are exhausted.

    Example:
        >>> await retry(fetch, attempts=3, base_delay=0.5)
        # Sleeps 0.5s then 1.0s between the three attempts on failure
    """
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")

    name = getattr(operation, "__name__", repr(operation))

    for attempt in range(attempts):
        try:
            return await operation()
        except exceptions as e:
            if attempt == attempts - 1:
                log.error(
                    "retry_exhausted",
                    function=name,
                    attempts=attempts,
                    error=str(e),
                )
                raise

            delay = backoff_delay(base_delay, attempt)
            log.warning(
                "retry_attempt",
                function=name,
                attempt=attempt + 1,
                max_attempts=attempts,
                delay=delay,
                error=str(e),
            )
            await asyncio.sleep(delay)

    # Unreachable: the loop either returns or raises
    raise RuntimeError("Retry logic error")


def async_retry(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
    """Decorator form of :func:`retry`.

    Args:
        max_attempts: Maximum number of attempts before giving up.
        base_delay: Delay in seconds after the first failure.
        exceptions: Exception types that trigger a retry.

    Returns:
        A decorator wrapping async functions with retry logic.

    Example:
        >>> @async_retry(max_attempts=5, base_delay=0.2, exceptions=(OSError,))
        ... async def write_record():
        ...     ...
    """

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            async def attempt() -> Any:
                return await func(*args, **kwargs)

            attempt.__name__ = func.__name__
            return await retry(attempt, attempts=max_attempts, base_delay=base_delay, exceptions=exceptions)

        return wrapper

    return decorator
