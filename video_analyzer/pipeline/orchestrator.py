"""
Analysis pipeline.

Runs the stages for one task strictly in order and records each transition in
the task store:

    queued -> processing(screenshot) -> processing(audio)
           -> processing(transcribe) -> processing(detect) -> completed

Any failure in the fatal stages turns into a terminal ``error`` task; nothing
escapes ``run`` except cancellation. Detection failures for a single segment
only mark that segment's probability as unknown.
"""

import asyncio
from pathlib import Path
from typing import Any, Protocol

import structlog

from video_analyzer.core.exceptions import TaskNotFoundError
from video_analyzer.core.task_store import Task, TaskStore
from video_analyzer.pipeline.segments import ensure_segments, has_text

logger = structlog.get_logger(__name__)

# Marks a segment whose detection call failed, as opposed to a 0.0 score
UNKNOWN_PROBABILITY = None

PROGRESS_SCREENSHOT = "Taking screenshot..."
PROGRESS_AUDIO = "Downloading audio..."
PROGRESS_TRANSCRIBE = "Transcribing audio..."
PROGRESS_DETECT = "Analyzing AI content..."

CANCELLED_MESSAGE = "Analysis cancelled"


class Screenshotter(Protocol):
    async def capture(self, url: str, output_path: Path) -> Path: ...


class AudioExtractor(Protocol):
    async def extract(self, url: str, output_path: Path) -> Path: ...


class Transcriber(Protocol):
    async def transcribe(self, audio_path: Path) -> dict[str, Any]: ...


class AIDetector(Protocol):
    def ensure_configured(self) -> None: ...

    async def detect(self, text: str) -> float: ...


class ResultWriter(Protocol):
    async def write(self, task: Task) -> Path | None: ...


class AnalysisPipeline:
    """Sequence the analysis stages for a task and track them in the store."""

    def __init__(
        self,
        store: TaskStore,
        screenshotter: Screenshotter,
        audio_extractor: AudioExtractor,
        transcriber: Transcriber,
        detector: AIDetector,
        result_writer: ResultWriter,
        screenshots_dir: Path = Path("screenshots"),
        audio_dir: Path = Path("audio"),
    ) -> None:
        self.store = store
        self.screenshotter = screenshotter
        self.audio_extractor = audio_extractor
        self.transcriber = transcriber
        self.detector = detector
        self.result_writer = result_writer
        self.screenshots_dir = screenshots_dir
        self.audio_dir = audio_dir

    async def run(self, task_id: str, url: str) -> Task:
        """Run every stage for ``task_id`` and return its terminal value.

        Raises:
            TaskNotFoundError: If the task was never created
            asyncio.CancelledError: If the run is cancelled (after the task
                has been recorded as errored)
        """
        try:
            task = await self.store.get(task_id)
        except asyncio.CancelledError:
            await self.mark_cancelled(task_id)
            raise
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found")

        log = logger.bind(task_id=task_id)
        log.info("Starting analysis", url=url)

        try:
            task = await self._advance(task, PROGRESS_SCREENSHOT)
            screenshot_path = self.screenshots_dir / f"{task_id}.png"
            await self.screenshotter.capture(url, screenshot_path)

            task = await self._advance(
                task, PROGRESS_AUDIO, screenshot_path=str(screenshot_path)
            )
            audio_path = self.audio_dir / f"{task_id}.wav"
            await self.audio_extractor.extract(url, audio_path)

            task = await self._advance(
                task, PROGRESS_TRANSCRIBE, audio_path=str(audio_path)
            )
            transcript = ensure_segments(await self.transcriber.transcribe(audio_path))

            task = await self._advance(task, PROGRESS_DETECT, transcript=transcript)
            transcript = await self.detect_segments(transcript, log)

            return await self._finalize(task.completed(transcript), log)

        except asyncio.CancelledError:
            log.warning("Analysis cancelled")
            await self._record_failure(task, CANCELLED_MESSAGE, log)
            raise
        except Exception as exc:
            log.error(
                "Analysis failed",
                stage=task.progress,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return await self._record_failure(task, str(exc) or type(exc).__name__, log)

    async def detect_segments(
        self, transcript: dict[str, Any], log: Any = logger
    ) -> dict[str, Any]:
        """Attach ``ai_probability`` to every segment that has text.

        Segments are processed one at a time in their original order. A failed
        call marks that segment with ``UNKNOWN_PROBABILITY`` and processing
        continues. Only a configuration error found before the first call
        fails the stage.
        """
        segments = transcript.get("segments")
        if not isinstance(segments, list) or not segments:
            return transcript

        if any(isinstance(s, dict) and has_text(s) for s in segments):
            self.detector.ensure_configured()

        enriched: list[Any] = []
        failures = 0
        for index, segment in enumerate(segments):
            if not isinstance(segment, dict) or not has_text(segment):
                enriched.append(segment)
                continue

            segment = dict(segment)
            try:
                segment["ai_probability"] = await self.detector.detect(segment["text"])
            except Exception as exc:
                failures += 1
                log.warning("AI detection failed for segment", segment=index, error=str(exc))
                segment["ai_probability"] = UNKNOWN_PROBABILITY
            enriched.append(segment)

        log.info("AI detection finished", segments=len(segments), failures=failures)
        return {**transcript, "segments": enriched}

    async def mark_cancelled(self, task_id: str) -> Task | None:
        """Record a cancelled run as errored unless it already finished.

        Used for runs cancelled before they reached their first stage.
        """
        task = await self.store.get(task_id)
        if task is None or task.status.is_terminal:
            return task
        log = logger.bind(task_id=task_id)
        log.warning("Analysis cancelled before it started")
        return await self._record_failure(task, CANCELLED_MESSAGE, log)

    async def _advance(self, task: Task, progress: str, **changes: Any) -> Task:
        task = task.processing(progress, **changes)
        await self.store.update(task.id, task)
        logger.debug("Stage started", task_id=task.id, progress=progress)
        return task

    async def _finalize(self, task: Task, log: Any) -> Task:
        await self.result_writer.write(task)
        await self.store.update(task.id, task)
        log.info("Analysis completed")
        return task

    async def _record_failure(self, task: Task, message: str, log: Any) -> Task:
        failed = task.failed(message)
        try:
            await self.result_writer.write(failed)
        except Exception as exc:
            log.error("Failed to persist errored result", error=str(exc))
        await self.store.update(failed.id, failed)
        return failed
