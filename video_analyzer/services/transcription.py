"""ElevenLabs speech-to-text client."""

import asyncio
from pathlib import Path
from typing import Any

import httpx
import structlog

from video_analyzer.core.exceptions import ConfigurationError, TranscriptionError

logger = structlog.get_logger(__name__)

ERROR_BODY_CHARS = 300


class ElevenLabsTranscriber:
    """Send a whole audio file to ElevenLabs and return its JSON transcript.

    The API key is checked when ``transcribe`` is called rather than at
    construction, so the service can start without credentials.
    """

    def __init__(
        self,
        api_key: str | None,
        client: httpx.AsyncClient,
        url: str = "https://api.elevenlabs.io/v1/speech-to-text",
        model_id: str = "scribe_v1",
        language_code: str = "en",
        timeout_seconds: float = 600.0,
    ) -> None:
        self.api_key = api_key
        self.client = client
        self.url = url
        self.model_id = model_id
        self.language_code = language_code
        self.timeout_seconds = timeout_seconds

    async def transcribe(self, audio_path: Path) -> dict[str, Any]:
        """Transcribe ``audio_path`` with word timings and speaker labels.

        Raises:
            ConfigurationError: If no API key is configured (before any request)
            TranscriptionError: On transport failures, error statuses or
                a response that is not a JSON object
        """
        if not self.api_key:
            raise ConfigurationError("ElevenLabs API key not configured")

        audio_bytes = await asyncio.to_thread(audio_path.read_bytes)
        data = {
            "model_id": self.model_id,
            "language_code": self.language_code,
            "diarize": "true",
            "timestamps_granularity": "word",
        }
        files = {"file": (audio_path.name, audio_bytes, "audio/wav")}

        logger.info(
            "Requesting transcription",
            path=str(audio_path),
            size_bytes=len(audio_bytes),
            model_id=self.model_id,
        )

        try:
            response = await self.client.post(
                self.url,
                headers={"xi-api-key": self.api_key},
                data=data,
                files=files,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            body = exc.response.text[:ERROR_BODY_CHARS]
            logger.error(
                "ElevenLabs transcription error",
                status_code=exc.response.status_code,
                body=body,
            )
            raise TranscriptionError(
                f"ElevenLabs transcription failed ({exc.response.status_code}): {body}"
            ) from exc
        except httpx.RequestError as exc:
            logger.error("ElevenLabs transcription error", error=str(exc))
            raise TranscriptionError(
                f"Unable to reach ElevenLabs: {exc}"
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise TranscriptionError("ElevenLabs returned invalid JSON") from exc

        if not isinstance(payload, dict):
            raise TranscriptionError("ElevenLabs returned an unexpected response shape")

        return payload
