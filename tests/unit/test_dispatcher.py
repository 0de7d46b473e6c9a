"""Tests for task_relay/engine/dispatcher.py."""

import pytest

from task_relay.engine.dispatcher import ChildTriggerDispatcher
from task_relay.exceptions import DispatchError, StoreWriteError
from task_relay.store.client import TaskStoreClient
from task_relay.store.memory import InMemoryTaskStore
from task_relay.utils.alerts import RecordingAlertNotifier


async def _seed(store: InMemoryTaskStore, records: dict) -> None:
    await store.commit(records)


class TestDispatchNoOp:
    """Cases where dispatch does nothing."""

    @pytest.mark.asyncio
    async def test_missing_completed_record(self, dispatcher: ChildTriggerDispatcher, memory_store: InMemoryTaskStore):
        assert await dispatcher.dispatch("ghost") == []
        assert memory_store.commit_count == 0

    @pytest.mark.asyncio
    async def test_no_next_tasks(self, dispatcher: ChildTriggerDispatcher, memory_store: InMemoryTaskStore):
        await _seed(memory_store, {"taskE": {"status": "fulfilled", "output": "E"}})

        assert await dispatcher.dispatch("taskE") == []
        assert memory_store.commit_count == 1

    @pytest.mark.asyncio
    async def test_empty_next_tasks(self, dispatcher: ChildTriggerDispatcher, memory_store: InMemoryTaskStore):
        await _seed(memory_store, {"taskE": {"status": "fulfilled", "next_tasks": []}})

        assert await dispatcher.dispatch("taskE") == []


class TestDispatchTransitions:
    """Child status handling."""

    @pytest.mark.asyncio
    async def test_queued_children_move_to_processing(
        self, dispatcher: ChildTriggerDispatcher, memory_store: InMemoryTaskStore
    ):
        await _seed(
            memory_store,
            {
                "taskA": {"status": "fulfilled", "output": "A", "next_tasks": ["taskB", "taskC"]},
                "taskB": {"status": "queued"},
                "taskC": {"status": "queued"},
            },
        )

        advanced = await dispatcher.dispatch("taskA")

        assert advanced == ["taskB", "taskC"]
        records = memory_store.snapshot()
        assert records["taskB"]["status"] == "processing"
        assert records["taskC"]["status"] == "processing"
        assert "updated_at" in records["taskB"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["processing", "fulfilled", "rejected"])
    async def test_non_queued_children_untouched(
        self, dispatcher: ChildTriggerDispatcher, memory_store: InMemoryTaskStore, status: str
    ):
        await _seed(
            memory_store,
            {
                "taskC": {"status": "fulfilled", "next_tasks": ["taskE"]},
                "taskE": {"status": status, "output": "kept"},
            },
        )

        assert await dispatcher.dispatch("taskC") == []
        assert memory_store.snapshot()["taskE"] == {"status": status, "output": "kept"}

    @pytest.mark.asyncio
    async def test_absent_child_skipped(self, dispatcher: ChildTriggerDispatcher, memory_store: InMemoryTaskStore):
        await _seed(memory_store, {"taskA": {"status": "fulfilled", "next_tasks": ["taskB"]}})

        assert await dispatcher.dispatch("taskA") == []
        assert "taskB" not in memory_store.snapshot()

    @pytest.mark.asyncio
    async def test_duplicate_dispatch_is_idempotent(
        self, dispatcher: ChildTriggerDispatcher, memory_store: InMemoryTaskStore
    ):
        await _seed(
            memory_store,
            {
                "taskC": {"status": "fulfilled", "next_tasks": ["taskE"]},
                "taskD": {"status": "fulfilled", "next_tasks": ["taskE"]},
                "taskE": {"status": "queued"},
            },
        )

        assert await dispatcher.dispatch("taskC") == ["taskE"]
        assert await dispatcher.dispatch("taskD") == []
        assert await dispatcher.dispatch("taskC") == []
        assert memory_store.snapshot()["taskE"]["status"] == "processing"


class TestDispatchFailures:
    """Per-child failures are contained."""

    @pytest.mark.asyncio
    async def test_write_failure_does_not_stop_siblings(
        self,
        store_client: TaskStoreClient,
        memory_store: InMemoryTaskStore,
        notifier: RecordingAlertNotifier,
    ):
        await _seed(
            memory_store,
            {
                "taskA": {"status": "fulfilled", "next_tasks": ["taskB", "taskC"]},
                "taskB": {"status": "queued"},
                "taskC": {"status": "queued"},
            },
        )
        real_update = store_client.update_atomically

        async def failing_for_b(task_id, fields):
            if task_id == "taskB":
                raise StoreWriteError("write refused", task_id=task_id)
            await real_update(task_id, fields)

        store_client.update_atomically = failing_for_b
        dispatcher = ChildTriggerDispatcher(store_client, notifier)

        advanced = await dispatcher.dispatch("taskA")

        assert advanced == ["taskC"]
        records = memory_store.snapshot()
        assert records["taskB"]["status"] == "queued"
        assert records["taskC"]["status"] == "processing"
        assert records["taskA"]["status"] == "fulfilled"
        assert len(notifier.alerts) == 1
        message, error = notifier.alerts[0]
        assert "taskB" in message
        assert isinstance(error, DispatchError)
        assert error.child_task_id == "taskB"
        assert error.parent_task_id == "taskA"

    @pytest.mark.asyncio
    async def test_child_read_failure_does_not_stop_siblings(
        self,
        store_client: TaskStoreClient,
        memory_store: InMemoryTaskStore,
        notifier: RecordingAlertNotifier,
    ):
        await _seed(
            memory_store,
            {
                "taskA": {"status": "fulfilled", "next_tasks": ["taskB", "taskC"]},
                "taskB": {"status": "not-a-status"},
                "taskC": {"status": "queued"},
            },
        )
        dispatcher = ChildTriggerDispatcher(store_client, notifier)

        assert await dispatcher.dispatch("taskA") == ["taskC"]
        assert len(notifier.alerts) == 1

    @pytest.mark.asyncio
    async def test_completed_record_read_failure_is_contained(
        self,
        store_client: TaskStoreClient,
        memory_store: InMemoryTaskStore,
        notifier: RecordingAlertNotifier,
    ):
        await _seed(memory_store, {"taskA": {"status": "bogus"}})
        dispatcher = ChildTriggerDispatcher(store_client, notifier)

        assert await dispatcher.dispatch("taskA") == []
        assert notifier.messages == ["Error triggering child tasks for taskA"]
