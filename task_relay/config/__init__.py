"""Configuration for task-relay.

Example:
    >>> from task_relay.config import RelaySettings
    >>> settings = RelaySettings.from_yaml("task_relay.yaml")
    >>> settings.retry.attempts
    3
"""

from task_relay.config.settings import RelaySettings, RetryConfig, StoreConfig

__all__ = ["RelaySettings", "RetryConfig", "StoreConfig"]
