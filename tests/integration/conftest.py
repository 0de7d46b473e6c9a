"""Pytest fixtures for integration tests."""

from pathlib import Path

import pytest

from task_relay.engine.host import LocalTriggerHost
from task_relay.engine.orchestrator import TaskOrchestrator
from task_relay.example_graph import build_example_registry
from task_relay.store.client import TaskStoreClient
from task_relay.store.file import FileTaskStore
from task_relay.utils.alerts import RecordingAlertNotifier


@pytest.fixture
def example_host(store_client: TaskStoreClient, orchestrator: TaskOrchestrator) -> LocalTriggerHost:
    """Example graph wired to the in-memory store."""
    return LocalTriggerHost(build_example_registry(), orchestrator, store_client)


@pytest.fixture
def file_example_host(tmp_path: Path, notifier: RecordingAlertNotifier) -> LocalTriggerHost:
    """Example graph wired to a file store in a temporary directory."""
    client = TaskStoreClient(FileTaskStore(tmp_path / "tasks"), notifier, retry_base_delay=0.0)
    return LocalTriggerHost(build_example_registry(), TaskOrchestrator(client, notifier), client)
