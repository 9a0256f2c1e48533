"""Shared test configuration and fixtures for all tests."""

import asyncio
import os
from pathlib import Path
import tempfile
from typing import Any

import pytest

# Keep lifespan side effects out of the working tree and off real services
_OUTPUT_ROOT = Path(tempfile.mkdtemp(prefix="video-analyzer-tests-"))
os.environ["SCREENSHOTS_DIR"] = str(_OUTPUT_ROOT / "screenshots")
os.environ["AUDIO_DIR"] = str(_OUTPUT_ROOT / "audio")
os.environ["RESULTS_DIR"] = str(_OUTPUT_ROOT / "results")
os.environ["PERSIST_RESULTS"] = "false"
os.environ.pop("ELEVENLABS_API_KEY", None)
os.environ.pop("GPTZERO_API_KEY", None)

from video_analyzer.core.exceptions import DetectionError  # noqa: E402
from video_analyzer.core.task_store import Task, TaskStore  # noqa: E402
from video_analyzer.pipeline.orchestrator import AnalysisPipeline  # noqa: E402


class FakeScreenshotter:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls: list[tuple[str, Path]] = []

    async def capture(self, url: str, output_path: Path) -> Path:
        self.calls.append((url, output_path))
        await asyncio.sleep(0)
        if self.error:
            raise self.error
        return output_path


class FakeAudioExtractor:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls: list[tuple[str, Path]] = []

    async def extract(self, url: str, output_path: Path) -> Path:
        self.calls.append((url, output_path))
        await asyncio.sleep(0)
        if self.error:
            raise self.error
        return output_path


class FakeTranscriber:
    def __init__(self, transcript: dict[str, Any] | None = None, error: Exception | None = None):
        self.transcript = transcript if transcript is not None else {"segments": []}
        self.error = error
        self.calls: list[Path] = []

    async def transcribe(self, audio_path: Path) -> dict[str, Any]:
        self.calls.append(audio_path)
        await asyncio.sleep(0)
        if self.error:
            raise self.error
        return self.transcript


class FakeDetector:
    """Scores texts from a lookup; texts mapped to an exception raise it."""

    def __init__(self, scores: dict[str, Any] | None = None, default: float = 0.5):
        self.scores = scores or {}
        self.default = default
        self.calls: list[str] = []
        self.configured_checks = 0

    def ensure_configured(self) -> None:
        self.configured_checks += 1

    async def detect(self, text: str) -> float:
        self.calls.append(text)
        await asyncio.sleep(0)
        score = self.scores.get(text, self.default)
        if isinstance(score, Exception):
            raise score
        return score


class RecordingResultWriter:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.written: list[Task] = []

    async def write(self, task: Task) -> Path | None:
        if self.error:
            raise self.error
        self.written.append(task)
        return None


class RecordingTaskStore(TaskStore):
    """TaskStore that remembers every value written through ``update``."""

    def __init__(self):
        super().__init__()
        self.history: list[Task] = []

    async def update(self, task_id: str, task: Task) -> Task:
        stored = await super().update(task_id, task)
        self.history.append(stored)
        return stored


@pytest.fixture
def store() -> RecordingTaskStore:
    return RecordingTaskStore()


@pytest.fixture
def sample_transcript() -> dict[str, Any]:
    """Transcription response with three speaker-attributed segments."""
    return {
        "language_code": "en",
        "text": "Hello there. This was written by a model. Goodbye.",
        "segments": [
            {"start": 0.0, "end": 1.2, "text": "Hello there.", "speaker": "speaker_0"},
            {"start": 1.2, "end": 3.5, "text": "This was written by a model.", "speaker": "speaker_1"},
            {"start": 3.5, "end": 4.0, "text": "Goodbye.", "speaker": "speaker_0"},
        ],
    }


@pytest.fixture
def screenshotter() -> FakeScreenshotter:
    return FakeScreenshotter()


@pytest.fixture
def audio_extractor() -> FakeAudioExtractor:
    return FakeAudioExtractor()


@pytest.fixture
def transcriber(sample_transcript) -> FakeTranscriber:
    return FakeTranscriber(sample_transcript)


@pytest.fixture
def detector() -> FakeDetector:
    return FakeDetector(
        {
            "Hello there.": 0.1,
            "This was written by a model.": 0.95,
            "Goodbye.": 0.0,
        }
    )


@pytest.fixture
def result_writer() -> RecordingResultWriter:
    return RecordingResultWriter()


@pytest.fixture
def pipeline(
    tmp_path, store, screenshotter, audio_extractor, transcriber, detector, result_writer
) -> AnalysisPipeline:
    return AnalysisPipeline(
        store=store,
        screenshotter=screenshotter,
        audio_extractor=audio_extractor,
        transcriber=transcriber,
        detector=detector,
        result_writer=result_writer,
        screenshots_dir=tmp_path / "screenshots",
        audio_dir=tmp_path / "audio",
    )


@pytest.fixture
def detection_error() -> DetectionError:
    return DetectionError("GPTZero request failed (503)")
