"""
Audio extraction for YouTube videos.

yt-dlp fetches the best audio stream (in a worker thread, since its API is
blocking) and ffmpeg transcodes it in a subprocess to the mono 16 kHz 16-bit
PCM WAV that speech-to-text services expect.
"""

import asyncio
from pathlib import Path
from typing import Any

import structlog
import yt_dlp
from yt_dlp.utils import DownloadError

from video_analyzer.core.exceptions import AudioExtractionError

logger = structlog.get_logger(__name__)

STDERR_TAIL_CHARS = 500


class YtDlpAudioExtractor:
    """Download and normalise the audio track of a video."""

    def __init__(
        self,
        sample_rate: int = 16_000,
        channels: int = 1,
        codec: str = "pcm_s16le",
        ffmpeg_binary: str = "ffmpeg",
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.codec = codec
        self.ffmpeg_binary = ffmpeg_binary

    async def extract(self, url: str, output_path: Path) -> Path:
        """Write the normalised audio of ``url`` to ``output_path``.

        Raises:
            AudioExtractionError: If the download or the transcode fails
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        source_path = await asyncio.to_thread(self._download, url, output_path)
        await self._transcode(source_path, output_path)

        # Only the normalised file is kept
        source_path.unlink(missing_ok=True)

        logger.info("Audio extracted", url=url, path=str(output_path))
        return output_path

    def ffmpeg_command(self, source_path: Path, output_path: Path) -> list[str]:
        return [
            self.ffmpeg_binary,
            "-y",
            "-hide_banner",
            "-loglevel",
            "error",
            "-i",
            str(source_path),
            "-vn",
            "-ac",
            str(self.channels),
            "-ar",
            str(self.sample_rate),
            "-acodec",
            self.codec,
            "-f",
            "wav",
            str(output_path),
        ]

    def _download(self, url: str, output_path: Path) -> Path:
        ydl_opts: dict[str, Any] = {
            "format": "bestaudio/best",
            "outtmpl": str(output_path.with_name(f"{output_path.stem}.source.%(ext)s")),
            "noplaylist": True,
            "quiet": True,
            "no_warnings": True,
        }

        try:
            with yt_dlp.YoutubeDL(ydl_opts) as ydl:
                info = ydl.extract_info(url, download=True)
                if info is None:
                    raise AudioExtractionError(f"yt-dlp returned no info for {url}")
                downloads = info.get("requested_downloads") or []
                if downloads and downloads[0].get("filepath"):
                    return Path(downloads[0]["filepath"])
                return Path(ydl.prepare_filename(info))
        except DownloadError as exc:
            raise AudioExtractionError(f"Audio download failed: {exc}") from exc

    async def _transcode(self, source_path: Path, output_path: Path) -> None:
        command = self.ffmpeg_command(source_path, output_path)
        logger.debug("Running ffmpeg", command=" ".join(command))

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise AudioExtractionError(
                f"ffmpeg binary not found: {self.ffmpeg_binary}"
            ) from exc

        _, stderr = await process.communicate()
        if process.returncode != 0:
            detail = stderr.decode(errors="replace").strip()[-STDERR_TAIL_CHARS:]
            raise AudioExtractionError(
                f"ffmpeg exited with status {process.returncode}: {detail or 'no output'}"
            )
