"""
Configuration for the YouTube Analyzer API.

Environment variables override the defaults below; a local ``.env`` file is
read as well. Service credentials are optional at startup and are only checked
when the stage that needs them runs.
"""

from enum import Enum
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
import structlog


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Application settings."""

    environment: Environment = Environment.DEVELOPMENT

    # API
    app_name: str = "YouTube Analyzer API"
    api_version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)
    reload: bool = False
    cors_origins: Annotated[list[str], NoDecode] = ["*"]

    # Credentials
    elevenlabs_api_key: str | None = None
    gptzero_api_key: str | None = None

    # Transcription
    elevenlabs_url: str = "https://api.elevenlabs.io/v1/speech-to-text"
    elevenlabs_model_id: str = "scribe_v1"
    transcription_language: str = "en"
    transcription_timeout_seconds: float = Field(default=600.0, gt=0)

    # AI detection
    gptzero_url: str = "https://api.gptzero.me/v2/predict/text"
    detection_timeout_seconds: float = Field(default=30.0, gt=0)

    # Reachability probe
    probe_timeout_seconds: float = Field(default=30.0, gt=0)

    # Screenshot
    viewport_width: int = Field(default=1280, ge=320)
    viewport_height: int = Field(default=720, ge=240)
    navigation_timeout_ms: int = Field(default=30_000, ge=1_000)
    player_timeout_ms: int = Field(default=10_000, ge=1_000)
    playback_wait_ms: int = Field(default=2_000, ge=0)

    # Audio
    audio_sample_rate: int = 16_000
    audio_channels: int = 1
    audio_codec: str = "pcm_s16le"
    ffmpeg_binary: str = "ffmpeg"

    # Storage
    screenshots_dir: Path = Path("screenshots")
    audio_dir: Path = Path("audio")
    results_dir: Path = Path("results")
    persist_results: bool = True
    persist_failed_results: bool = False

    # Task store; unset keeps every task for the process lifetime
    task_ttl_hours: float | None = Field(default=None, gt=0)

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> Any:
        """Parse CORS origins from a comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == Environment.PRODUCTION

    def get_environment_display(self) -> str:
        """Get human-readable environment name."""
        return self.environment.value.title()

    def output_dirs(self) -> list[Path]:
        """Directories the pipeline writes into."""
        return [self.screenshots_dir, self.audio_dir, self.results_dir]


# Global settings instance
settings = Settings()


def configure_structlog(log_level: str | None = None, json_logs: bool | None = None) -> None:
    """Initialize structlog on top of stdlib logging."""
    import logging
    import sys

    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    json_logs = settings.log_json if json_logs is None else json_logs

    logging.basicConfig(
        level=level,
        stream=sys.stdout,
        force=True,
        format="%(message)s",
    )

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.processors.TimeStamper(fmt="iso" if json_logs else "%H:%M:%S"),
        structlog.stdlib.add_log_level,
    ]
    if json_logs:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Chatty third-party loggers
    for name in ("httpx", "httpcore", "asyncio"):
        logging.getLogger(name).setLevel(logging.WARNING)
