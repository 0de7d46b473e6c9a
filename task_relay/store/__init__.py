"""Task record persistence.

Key Components:
    - TaskStore: Abstract backend (reads, merge writes, atomic batches)
    - InMemoryTaskStore: Dictionary-backed backend
    - FileTaskStore: JSON-file backend with atomic per-record writes
    - TaskStoreClient: Engine-facing client (timestamps, validation, retries)
"""

from task_relay.config.settings import RelaySettings
from task_relay.store.base import DELETE_FIELD, SERVER_TIMESTAMP, TaskStore, WriteBatch
from task_relay.store.client import TaskStoreClient
from task_relay.store.file import FileTaskStore
from task_relay.store.memory import InMemoryTaskStore


def create_store(settings: RelaySettings) -> TaskStore:
    """Create the backend selected by ``settings.store.backend``."""
    if settings.store.backend == "file":
        return FileTaskStore(settings.state_dir)
    return InMemoryTaskStore()


__all__ = [
    "DELETE_FIELD",
    "SERVER_TIMESTAMP",
    "FileTaskStore",
    "InMemoryTaskStore",
    "TaskStore",
    "TaskStoreClient",
    "WriteBatch",
    "create_store",
]
