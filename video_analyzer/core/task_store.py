"""
In-memory task store for analysis requests.

Every submitted URL becomes a ``Task`` that the pipeline moves through its
stages. The store is the single source of truth for polling clients: the
pipeline replaces a task's whole value at each stage boundary and the HTTP
layer only reads it.
"""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

import structlog

from video_analyzer.core.exceptions import (
    TaskExistsError,
    TaskFinalizedError,
    TaskNotFoundError,
)

logger = structlog.get_logger(__name__)


class TaskStatus(str, Enum):
    """Task execution status."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.ERROR)


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


@dataclass(frozen=True)
class Task:
    """
    One analysis request and its accumulated state.

    Attributes:
        id: Unique identifier, generated at submission
        url: Submitted video URL
        status: Current execution status
        timestamp: When the task last changed state
        progress: Current stage label (only while processing)
        screenshot_path: Screenshot written by the first stage
        audio_path: Normalised audio written by the second stage
        transcript: Transcription response, later enriched with AI probabilities
        error: Failure message (only when status is error)
    """

    id: str
    url: str
    status: TaskStatus
    timestamp: str = field(default_factory=utc_timestamp)
    progress: str | None = None
    screenshot_path: str | None = None
    audio_path: str | None = None
    transcript: dict[str, Any] | None = None
    error: str | None = None

    @classmethod
    def queued(cls, task_id: str, url: str) -> "Task":
        return cls(id=task_id, url=url, status=TaskStatus.QUEUED)

    def processing(self, progress: str, **changes: Any) -> "Task":
        """Return a processing copy at a new stage, keeping earlier outputs."""
        return replace(
            self,
            status=TaskStatus.PROCESSING,
            progress=progress,
            timestamp=utc_timestamp(),
            **changes,
        )

    def completed(self, transcript: dict[str, Any] | None) -> "Task":
        return replace(
            self,
            status=TaskStatus.COMPLETED,
            progress=None,
            transcript=transcript,
            timestamp=utc_timestamp(),
        )

    def failed(self, message: str) -> "Task":
        return replace(
            self,
            status=TaskStatus.ERROR,
            progress=None,
            error=message,
            timestamp=utc_timestamp(),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON shape served by the API and written to disk."""
        data: dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "status": self.status.value,
            "timestamp": self.timestamp,
        }
        optional = {
            "progress": self.progress,
            "screenshot_path": self.screenshot_path,
            "audio_path": self.audio_path,
            "transcript": self.transcript,
            "error": self.error,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data


class TaskStore:
    """
    Async-safe mapping from task id to ``Task``.

    All access goes through one ``asyncio.Lock`` held only for the dictionary
    operation itself, so a reader never sees a partially replaced entry and
    tasks never wait on each other's pipeline work.

    Entries are kept for the life of the process unless ``ttl_hours`` is set,
    in which case terminal tasks older than the TTL are evicted.

    Example:
        >>> store = TaskStore()
        >>> await store.create(Task.queued("abc123", "https://youtu.be/xyz"))
        >>> task = await store.get("abc123")
        >>> await store.update("abc123", task.processing("Taking screenshot..."))
    """

    def __init__(self, ttl_hours: float | None = None):
        self._tasks: dict[str, Task] = {}
        self._finished_at: dict[str, datetime] = {}
        self._lock = asyncio.Lock()
        self.ttl = timedelta(hours=ttl_hours) if ttl_hours else None

        logger.info("TaskStore initialized", ttl_hours=ttl_hours)

    async def create(self, task: Task) -> Task:
        """
        Insert a new task.

        Raises:
            TaskExistsError: If the id is already present
        """
        async with self._lock:
            if task.id in self._tasks:
                raise TaskExistsError(f"Task {task.id} already exists")

            self._tasks[task.id] = task
            logger.debug("Task created", task_id=task.id, status=task.status.value)

            if self.ttl is not None:
                self._evict_expired()

            return task

    async def update(self, task_id: str, task: Task) -> Task:
        """
        Replace the stored value for ``task_id``.

        This is a full replacement, not a merge: callers carry forward the
        fields they want to keep.

        Raises:
            TaskNotFoundError: If the id is unknown
            TaskFinalizedError: If the stored task is already terminal
        """
        if task.id != task_id:
            raise ValueError(f"Task id mismatch: {task.id} != {task_id}")

        async with self._lock:
            current = self._tasks.get(task_id)
            if current is None:
                raise TaskNotFoundError(f"Task {task_id} not found")
            if current.status.is_terminal:
                raise TaskFinalizedError(
                    f"Task {task_id} is already {current.status.value}"
                )

            self._tasks[task_id] = task
            if task.status.is_terminal:
                self._finished_at[task_id] = datetime.now(timezone.utc)

            logger.debug(
                "Task updated",
                task_id=task_id,
                status=task.status.value,
                progress=task.progress,
            )
            return task

    async def get(self, task_id: str) -> Task | None:
        """Return the current value for ``task_id`` or None."""
        async with self._lock:
            if self.ttl is not None and self._is_expired(task_id):
                self._remove(task_id)
                return None
            return self._tasks.get(task_id)

    async def count(self) -> int:
        async with self._lock:
            return len(self._tasks)

    async def cleanup(self) -> int:
        """Force eviction of expired terminal tasks. Returns the number removed."""
        async with self._lock:
            if self.ttl is None:
                return 0
            return self._evict_expired()

    def _is_expired(self, task_id: str) -> bool:
        finished_at = self._finished_at.get(task_id)
        if finished_at is None or self.ttl is None:
            return False
        return datetime.now(timezone.utc) - finished_at > self.ttl

    def _remove(self, task_id: str) -> None:
        self._tasks.pop(task_id, None)
        self._finished_at.pop(task_id, None)

    def _evict_expired(self) -> int:
        expired = [task_id for task_id in self._finished_at if self._is_expired(task_id)]
        for task_id in expired:
            self._remove(task_id)

        if expired:
            logger.info(
                "Expired tasks evicted",
                expired_tasks=len(expired),
                remaining_tasks=len(self._tasks),
            )
        return len(expired)


# Global store instance (initialized once at startup)
_task_store: TaskStore | None = None


def get_task_store() -> TaskStore:
    """
    Get the global task store.

    Raises:
        RuntimeError: If the store has not been initialized
    """
    if _task_store is None:
        raise RuntimeError("Task store not initialized. Call initialize_store() first.")
    return _task_store


def initialize_store(ttl_hours: float | None = None) -> TaskStore:
    """Create the global task store."""
    global _task_store
    _task_store = TaskStore(ttl_hours=ttl_hours)
    logger.info("Global task store initialized")
    return _task_store


def reset_store() -> None:
    """Reset the global store (for testing)."""
    global _task_store
    _task_store = None
