"""Reachability probe run before a task is accepted."""

import asyncio
from typing import Any

import structlog
import yt_dlp
from yt_dlp.utils import DownloadError, ExtractorError

from video_analyzer.core.exceptions import VideoUnavailableError

logger = structlog.get_logger(__name__)


class YouTubeProber:
    """Confirm that a video exists by extracting its metadata only."""

    def __init__(self, timeout_seconds: float = 30.0) -> None:
        self.timeout_seconds = timeout_seconds

    async def probe(self, url: str) -> dict[str, Any]:
        """Return basic metadata for ``url``.

        Raises:
            VideoUnavailableError: If the video cannot be resolved in time
        """
        try:
            info = await asyncio.wait_for(
                asyncio.to_thread(self._extract_info, url),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise VideoUnavailableError(
                f"metadata lookup timed out after {self.timeout_seconds:.0f}s"
            ) from exc
        except (DownloadError, ExtractorError) as exc:
            raise VideoUnavailableError(str(exc)) from exc
        except Exception as exc:
            logger.warning(
                "Video probe failed",
                url=url,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise VideoUnavailableError(str(exc) or type(exc).__name__) from exc

        if not info:
            raise VideoUnavailableError("no video information returned")

        logger.debug("Video reachable", url=url, video_id=info.get("id"))
        return {
            "id": info.get("id"),
            "title": info.get("title"),
            "duration": info.get("duration"),
        }

    def _extract_info(self, url: str) -> dict[str, Any] | None:
        ydl_opts = {
            "quiet": True,
            "no_warnings": True,
            "noplaylist": True,
            "skip_download": True,
        }
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            return ydl.extract_info(url, download=False)
