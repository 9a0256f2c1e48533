"""Exception hierarchy for the analyzer service."""


class AnalyzerError(Exception):
    """Base class for errors raised by analysis stages and collaborators."""


class ConfigurationError(AnalyzerError):
    """A required setting (usually a service credential) is missing."""


class VideoUnavailableError(AnalyzerError):
    """The submitted video could not be reached on the source platform."""


class ScreenshotError(AnalyzerError):
    """Browser automation failed to capture the playing video."""


class AudioExtractionError(AnalyzerError):
    """Audio download or transcoding failed."""


class TranscriptionError(AnalyzerError):
    """The transcription service rejected the request or returned garbage."""


class DetectionError(AnalyzerError):
    """The AI-detection service failed for a single text span."""


class TaskStoreError(Exception):
    """Base class for task store contract violations."""


class TaskExistsError(TaskStoreError):
    pass


class TaskNotFoundError(TaskStoreError):
    pass


class TaskFinalizedError(TaskStoreError):
    """Raised when writing to a task that already reached a terminal state."""
