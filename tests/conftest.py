"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from task_relay.engine.dispatcher import ChildTriggerDispatcher
from task_relay.engine.orchestrator import TaskOrchestrator
from task_relay.engine.resolver import DependencyResolver
from task_relay.store.client import TaskStoreClient
from task_relay.store.file import FileTaskStore
from task_relay.store.memory import InMemoryTaskStore
from task_relay.utils.alerts import RecordingAlertNotifier


@pytest.fixture
def memory_store() -> InMemoryTaskStore:
    """Empty in-memory task store."""
    return InMemoryTaskStore()


@pytest.fixture
def file_store(tmp_path: Path) -> FileTaskStore:
    """File task store in a temporary directory."""
    return FileTaskStore(tmp_path / "tasks")


@pytest.fixture
def notifier() -> RecordingAlertNotifier:
    """Notifier that records alerts for assertions."""
    return RecordingAlertNotifier()


@pytest.fixture
def store_client(memory_store: InMemoryTaskStore, notifier: RecordingAlertNotifier) -> TaskStoreClient:
    """Store client over the in-memory store, with no backoff delay."""
    return TaskStoreClient(memory_store, notifier, retry_attempts=3, retry_base_delay=0.0)


@pytest.fixture
def resolver(store_client: TaskStoreClient) -> DependencyResolver:
    return DependencyResolver(store_client)


@pytest.fixture
def dispatcher(store_client: TaskStoreClient, notifier: RecordingAlertNotifier) -> ChildTriggerDispatcher:
    return ChildTriggerDispatcher(store_client, notifier)


@pytest.fixture
def orchestrator(store_client: TaskStoreClient, notifier: RecordingAlertNotifier) -> TaskOrchestrator:
    """Engine wired to the in-memory store and the recording notifier."""
    return TaskOrchestrator(store_client, notifier)
