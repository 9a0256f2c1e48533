"""Core modules - task store, URL validation and exceptions."""

from .exceptions import (
    AnalyzerError,
    AudioExtractionError,
    ConfigurationError,
    DetectionError,
    ScreenshotError,
    TaskExistsError,
    TaskFinalizedError,
    TaskNotFoundError,
    TaskStoreError,
    TranscriptionError,
    VideoUnavailableError,
)
from .task_store import (
    Task,
    TaskStatus,
    TaskStore,
    get_task_store,
    initialize_store,
    reset_store,
)
from .url_validator import is_valid_youtube_url

__all__ = [
    "AnalyzerError",
    "AudioExtractionError",
    "ConfigurationError",
    "DetectionError",
    "ScreenshotError",
    "Task",
    "TaskExistsError",
    "TaskFinalizedError",
    "TaskNotFoundError",
    "TaskStatus",
    "TaskStore",
    "TaskStoreError",
    "TranscriptionError",
    "VideoUnavailableError",
    "get_task_store",
    "initialize_store",
    "is_valid_youtube_url",
    "reset_store",
]
