"""Developer alerting.

Alerts are one-way notifications to whoever operates the task graph. They
are synchronous, fire-and-forget calls: the engine never awaits or retries
them, and a broken notifier must never change the outcome of a task.
"""

from typing import Protocol, runtime_checkable

import structlog

log = structlog.get_logger(__name__)


@runtime_checkable
class AlertNotifier(Protocol):
    """Receives developer alerts."""

    def notify(self, message: str, error: BaseException | None = None) -> None: ...


class LogAlertNotifier:
    """Notifier that emits alerts as structured error log events."""

    def notify(self, message: str, error: BaseException | None = None) -> None:
        log.error(
            "developer_alert",
            alert=message,
            error=str(error) if error is not None else None,
            error_type=type(error).__name__ if error is not None else None,
        )


class RecordingAlertNotifier:
    """Notifier that keeps alerts in memory, for inspection after a run."""

    def __init__(self) -> None:
        self.alerts: list[tuple[str, BaseException | None]] = []

    def notify(self, message: str, error: BaseException | None = None) -> None:
        self.alerts.append((message, error))

    @property
    def messages(self) -> list[str]:
        return [message for message, _ in self.alerts]


def safe_notify(notifier: AlertNotifier, message: str, error: BaseException | None = None) -> None:
    """Deliver an alert without letting notifier failures escape."""
    try:
        notifier.notify(message, error)
    except Exception as e:
        log.warning("alert_delivery_failed", alert=message, error=str(e))
