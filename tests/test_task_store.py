"""
Unit tests for the TaskStore and Task value object.

Cover the create/update/get contract, terminal-state protection, optional TTL
eviction and concurrent access from many coroutines.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from video_analyzer.core.exceptions import (
    TaskExistsError,
    TaskFinalizedError,
    TaskNotFoundError,
)
from video_analyzer.core.task_store import (
    Task,
    TaskStatus,
    TaskStore,
    get_task_store,
    initialize_store,
    reset_store,
)

URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


@pytest.fixture
def queued_task():
    return Task.queued("task-123", URL)


class TestTask:
    """Test the Task value object."""

    def test_queued_task_dict(self, queued_task):
        data = queued_task.to_dict()

        assert data["id"] == "task-123"
        assert data["url"] == URL
        assert data["status"] == "queued"
        assert data["timestamp"].endswith("Z")
        assert "progress" not in data
        assert "error" not in data

    def test_processing_carries_forward_outputs(self, queued_task):
        first = queued_task.processing("Downloading audio...", screenshot_path="s/1.png")
        second = first.processing("Transcribing audio...", audio_path="a/1.wav")

        assert second.status == TaskStatus.PROCESSING
        assert second.progress == "Transcribing audio..."
        assert second.screenshot_path == "s/1.png"
        assert second.audio_path == "a/1.wav"
        assert queued_task.status == TaskStatus.QUEUED

    def test_completed_clears_progress(self, queued_task):
        task = queued_task.processing("Analyzing AI content...").completed({"segments": []})
        data = task.to_dict()

        assert data["status"] == "completed"
        assert data["transcript"] == {"segments": []}
        assert "progress" not in data

    def test_failed_records_message(self, queued_task):
        task = queued_task.processing("Taking screenshot...").failed("browser crashed")

        assert task.status == TaskStatus.ERROR
        assert task.error == "browser crashed"
        assert task.progress is None

    def test_null_probability_survives_serialization(self, queued_task):
        transcript = {"segments": [{"text": "hi", "ai_probability": None}]}
        data = queued_task.completed(transcript).to_dict()

        assert data["transcript"]["segments"][0] == {"text": "hi", "ai_probability": None}

    def test_terminal_statuses(self):
        assert TaskStatus.COMPLETED.is_terminal
        assert TaskStatus.ERROR.is_terminal
        assert not TaskStatus.QUEUED.is_terminal
        assert not TaskStatus.PROCESSING.is_terminal


class TestTaskStore:
    """Test TaskStore core functionality."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, queued_task):
        store = TaskStore()
        await store.create(queued_task)

        assert await store.get("task-123") == queued_task
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_get_unknown_returns_none(self):
        store = TaskStore()
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_create_duplicate_raises(self, queued_task):
        store = TaskStore()
        await store.create(queued_task)

        with pytest.raises(TaskExistsError, match="Task task-123 already exists"):
            await store.create(Task.queued("task-123", "https://youtu.be/other"))

        assert (await store.get("task-123")).url == URL

    @pytest.mark.asyncio
    async def test_update_replaces_whole_value(self, queued_task):
        store = TaskStore()
        await store.create(queued_task)
        await store.update(
            "task-123", queued_task.processing("Downloading audio...", screenshot_path="x.png")
        )

        # A value built without the screenshot path drops it
        await store.update("task-123", queued_task.processing("Transcribing audio..."))

        stored = await store.get("task-123")
        assert stored.progress == "Transcribing audio..."
        assert stored.screenshot_path is None

    @pytest.mark.asyncio
    async def test_update_unknown_raises(self, queued_task):
        store = TaskStore()
        with pytest.raises(TaskNotFoundError):
            await store.update("task-123", queued_task)

    @pytest.mark.asyncio
    async def test_update_id_mismatch_raises(self, queued_task):
        store = TaskStore()
        await store.create(queued_task)
        with pytest.raises(ValueError, match="mismatch"):
            await store.update("other-id", queued_task)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("terminal", ["completed", "failed"])
    async def test_terminal_task_cannot_change(self, queued_task, terminal):
        store = TaskStore()
        await store.create(queued_task)
        final = (
            queued_task.completed({"segments": []})
            if terminal == "completed"
            else queued_task.failed("boom")
        )
        await store.update("task-123", final)

        with pytest.raises(TaskFinalizedError):
            await store.update("task-123", queued_task.processing("Taking screenshot..."))

        assert await store.get("task-123") == final
        assert await store.get("task-123") == final

    @pytest.mark.asyncio
    async def test_concurrent_access(self):
        store = TaskStore()

        async def lifecycle(i: int) -> Task:
            task = Task.queued(f"task-{i}", f"https://youtu.be/video{i}")
            await store.create(task)
            for label in ("Taking screenshot...", "Downloading audio..."):
                task = task.processing(label)
                await store.update(task.id, task)
                await asyncio.sleep(0)
                assert (await store.get(task.id)).progress == label
            task = task.completed({"segments": []})
            return await store.update(task.id, task)

        results = await asyncio.gather(*(lifecycle(i) for i in range(50)))

        assert await store.count() == 50
        for i, task in enumerate(results):
            stored = await store.get(f"task-{i}")
            assert stored == task
            assert stored.url == f"https://youtu.be/video{i}"


class TestTaskStoreEviction:
    """Test optional TTL eviction."""

    @pytest.mark.asyncio
    async def test_no_eviction_by_default(self, queued_task):
        store = TaskStore()
        await store.create(queued_task)
        await store.update("task-123", queued_task.completed(None))

        assert store.ttl is None
        assert await store.cleanup() == 0
        assert await store.get("task-123") is not None

    @pytest.mark.asyncio
    async def test_expired_terminal_tasks_are_evicted(self, queued_task):
        store = TaskStore(ttl_hours=1)
        await store.create(queued_task)
        await store.create(Task.queued("running", URL))
        await store.update("task-123", queued_task.completed(None))

        store._finished_at["task-123"] = datetime.now(timezone.utc) - timedelta(hours=2)

        assert await store.cleanup() == 1
        assert await store.get("task-123") is None
        assert await store.get("running") is not None

    @pytest.mark.asyncio
    async def test_get_drops_expired_task(self, queued_task):
        store = TaskStore(ttl_hours=1)
        await store.create(queued_task)
        await store.update("task-123", queued_task.failed("boom"))
        store._finished_at["task-123"] = datetime.now(timezone.utc) - timedelta(hours=2)

        assert await store.get("task-123") is None
        assert await store.count() == 0


class TestGlobalStore:
    """Test global store management."""

    def test_get_before_initialize_raises(self):
        reset_store()
        with pytest.raises(RuntimeError, match="not initialized"):
            get_task_store()

    def test_initialize_and_reset(self):
        store = initialize_store(ttl_hours=2)
        try:
            assert get_task_store() is store
            assert store.ttl == timedelta(hours=2)
        finally:
            reset_store()
