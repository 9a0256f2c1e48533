"""
Service wiring for the running application.

Builds the collaborators, pipeline and runner from settings. The API layer
reaches them through ``app.state.services``.
"""

from dataclasses import dataclass

import httpx
import structlog

from video_analyzer.config import Settings
from video_analyzer.core.task_store import TaskStore
from video_analyzer.pipeline.orchestrator import AnalysisPipeline, ResultWriter
from video_analyzer.pipeline.runner import TaskRunner
from video_analyzer.services.ai_detection import GPTZeroDetector
from video_analyzer.services.audio import YtDlpAudioExtractor
from video_analyzer.services.result_writer import JsonResultWriter, NullResultWriter
from video_analyzer.services.screenshot import PlaywrightScreenshotter
from video_analyzer.services.transcription import ElevenLabsTranscriber
from video_analyzer.services.video_probe import YouTubeProber

logger = structlog.get_logger(__name__)


@dataclass
class Services:
    """Long-lived objects shared by request handlers."""

    prober: YouTubeProber
    pipeline: AnalysisPipeline
    runner: TaskRunner
    http_client: httpx.AsyncClient

    async def aclose(self) -> None:
        await self.runner.shutdown()
        await self.http_client.aclose()


def create_services(settings: Settings, store: TaskStore) -> Services:
    """Create the production collaborators from ``settings``."""
    http_client = httpx.AsyncClient()

    result_writer: ResultWriter
    if settings.persist_results:
        result_writer = JsonResultWriter(
            settings.results_dir, persist_failures=settings.persist_failed_results
        )
    else:
        result_writer = NullResultWriter()

    pipeline = AnalysisPipeline(
        store=store,
        screenshotter=PlaywrightScreenshotter(
            viewport_width=settings.viewport_width,
            viewport_height=settings.viewport_height,
            navigation_timeout_ms=settings.navigation_timeout_ms,
            player_timeout_ms=settings.player_timeout_ms,
            playback_wait_ms=settings.playback_wait_ms,
        ),
        audio_extractor=YtDlpAudioExtractor(
            sample_rate=settings.audio_sample_rate,
            channels=settings.audio_channels,
            codec=settings.audio_codec,
            ffmpeg_binary=settings.ffmpeg_binary,
        ),
        transcriber=ElevenLabsTranscriber(
            api_key=settings.elevenlabs_api_key,
            client=http_client,
            url=settings.elevenlabs_url,
            model_id=settings.elevenlabs_model_id,
            language_code=settings.transcription_language,
            timeout_seconds=settings.transcription_timeout_seconds,
        ),
        detector=GPTZeroDetector(
            api_key=settings.gptzero_api_key,
            client=http_client,
            url=settings.gptzero_url,
            timeout_seconds=settings.detection_timeout_seconds,
        ),
        result_writer=result_writer,
        screenshots_dir=settings.screenshots_dir,
        audio_dir=settings.audio_dir,
    )

    logger.info(
        "Services created",
        persist_results=settings.persist_results,
        elevenlabs_configured=bool(settings.elevenlabs_api_key),
        gptzero_configured=bool(settings.gptzero_api_key),
    )

    return Services(
        prober=YouTubeProber(timeout_seconds=settings.probe_timeout_seconds),
        pipeline=pipeline,
        runner=TaskRunner(on_cancelled=pipeline.mark_cancelled),
        http_client=http_client,
    )
