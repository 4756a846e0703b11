"""
Configuration settings for the episode pipeline.

Values come from the process environment (a local ``.env`` file is loaded
first). AWS credentials are not read here: boto3 resolves them through its
usual credential chain.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from sse_quotes.exceptions import ConfigurationError


DEFAULT_AUDIO_URL_TEMPLATE = "https://download.softskills.audio/sse-{episode}.mp3"


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_float(name: str, default: float) -> float:
    value = _env_str(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    value = _env_str(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e


@dataclass
class PipelineConfig:
    """Configuration for the episode pipeline"""

    # Speech service
    speech_api_key: Optional[str] = None
    poll_interval: float = 5.0
    max_poll_duration: Optional[float] = 3600.0  # None disables the limit

    # Object storage
    region: str = "eu-west-1"
    storage_endpoint: Optional[str] = None
    audio_bucket: str = "sse-mp3"
    transcript_bucket: str = "sse-txt"

    # Audio source and local staging
    audio_url_template: str = DEFAULT_AUDIO_URL_TEMPLATE
    staging_dir: str = "data/staging"
    download_timeout: float = 120.0
    trim_start_seconds: float = 0.0
    trim_end_seconds: float = 30.0

    # Batch
    max_concurrency: int = 8
    batch_from: Optional[int] = None
    batch_to: Optional[int] = None

    log_file: str = "logs/sse_quotes.log"

    def __post_init__(self) -> None:
        if self.trim_end_seconds <= self.trim_start_seconds:
            raise ConfigurationError(
                f"Trim window is empty: {self.trim_start_seconds}s-{self.trim_end_seconds}s"
            )
        if self.trim_start_seconds < 0:
            raise ConfigurationError("Trim start must not be negative")
        if self.poll_interval < 0:
            raise ConfigurationError("Poll interval must not be negative")
        if self.max_concurrency < 1:
            raise ConfigurationError("Max concurrency must be at least 1")
        if self.max_poll_duration is not None and self.max_poll_duration <= 0:
            self.max_poll_duration = None

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build a config from environment variables (and ``.env``)."""
        load_dotenv()
        return cls(
            speech_api_key=_env_str("ASSEMBLYAI_API_KEY"),
            poll_interval=_env_float("SSE_POLL_INTERVAL", 5.0),
            max_poll_duration=_env_float("SSE_MAX_POLL_DURATION", 3600.0),
            region=_env_str("AWS_REGION", "eu-west-1"),
            storage_endpoint=_env_str("BUCKET_ENDPOINT"),
            audio_bucket=_env_str("SSE_AUDIO_BUCKET", "sse-mp3"),
            transcript_bucket=_env_str("SSE_TRANSCRIPT_BUCKET", "sse-txt"),
            audio_url_template=_env_str(
                "SSE_AUDIO_URL_TEMPLATE", DEFAULT_AUDIO_URL_TEMPLATE
            ),
            staging_dir=_env_str("SSE_STAGING_DIR", "data/staging"),
            download_timeout=_env_float("SSE_DOWNLOAD_TIMEOUT", 120.0),
            trim_start_seconds=_env_float("SSE_TRIM_START", 0.0),
            trim_end_seconds=_env_float("SSE_TRIM_END", 30.0),
            max_concurrency=_env_int("SSE_MAX_CONCURRENCY", 8),
            batch_from=_env_int("SSE_BATCH_FROM", None),
            batch_to=_env_int("SSE_BATCH_TO", None),
            log_file=_env_str("SSE_LOG_FILE", "logs/sse_quotes.log"),
        )

    def source_url(self, episode: int) -> str:
        """Public URL of the original episode audio."""
        return self.audio_url_template.format(episode=episode)
