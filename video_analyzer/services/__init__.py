"""External collaborators used by the analysis pipeline."""

from .ai_detection import GPTZeroDetector
from .audio import YtDlpAudioExtractor
from .result_writer import JsonResultWriter, NullResultWriter
from .screenshot import PlaywrightScreenshotter
from .transcription import ElevenLabsTranscriber
from .video_probe import YouTubeProber

__all__ = [
    "ElevenLabsTranscriber",
    "GPTZeroDetector",
    "JsonResultWriter",
    "NullResultWriter",
    "PlaywrightScreenshotter",
    "YouTubeProber",
    "YtDlpAudioExtractor",
]
