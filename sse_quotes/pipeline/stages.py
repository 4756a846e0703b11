"""
Per-episode pipeline.

One episode goes through two halves, each guarded by an existence check on
its output artifact:

    CHECK_AUDIO -> (skip | DOWNLOAD -> TRIM -> UPLOAD_AUDIO)
    CHECK_TRANSCRIPT -> (skip | TRANSCRIBE -> EXTRACT -> UPLOAD_TRANSCRIPT)

The first failing stage ends the episode. The raised error is a
``PipelineError`` tagged with the episode and the stage, whatever the
underlying library raised. Local staging files are removed on every exit.
"""

import asyncio
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Awaitable, Callable, Optional

from sse_quotes.config import PipelineConfig
from sse_quotes.exceptions import (
    ConfigurationError,
    DownloadError,
    ExtractionError,
    PipelineError,
    StorageError,
    TranscriptionError,
    TrimError,
)
from sse_quotes.ingestion import download_audio, trim_audio
from sse_quotes.logger import log_function
from sse_quotes.models import EpisodeResult, EpisodeStage, audio_key, transcript_key
from sse_quotes.storage import BaseStorage
from sse_quotes.transcription import BaseSpeechClient, extract_quote, transcribe_audio


logger = logging.getLogger("sse_quotes.pipeline")

STAGE_ERRORS = {
    EpisodeStage.CHECK_AUDIO: StorageError,
    EpisodeStage.DOWNLOAD: DownloadError,
    EpisodeStage.TRIM: TrimError,
    EpisodeStage.UPLOAD_AUDIO: StorageError,
    EpisodeStage.CHECK_TRANSCRIPT: StorageError,
    EpisodeStage.TRANSCRIBE: TranscriptionError,
    EpisodeStage.EXTRACT: ExtractionError,
    EpisodeStage.UPLOAD_TRANSCRIPT: StorageError,
}

AUDIO_CONTENT_TYPE = "audio/mpeg"


class EpisodePipeline:
    """Runs the cut and transcribe halves for single episodes."""

    def __init__(
        self,
        storage: BaseStorage,
        config: PipelineConfig,
        speech_client: Optional[BaseSpeechClient] = None,
        *,
        download: Callable[..., Awaitable[Path]] = download_audio,
        trim: Callable[..., Awaitable[Path]] = trim_audio,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.storage = storage
        self.config = config
        self.speech_client = speech_client
        self._download = download
        self._trim = trim
        self._sleep = sleep

    @contextmanager
    def _stage(self, episode: int, stage: EpisodeStage):
        logger.debug(f"Episode {episode}: {stage.value}")
        try:
            yield
        except PipelineError as e:
            if e.episode is None:
                e.episode = episode
            if e.stage is None:
                e.stage = stage
            raise
        except Exception as e:
            error_cls = STAGE_ERRORS.get(stage, PipelineError)
            raise error_cls(
                f"{type(e).__name__}: {e}", episode=episode, stage=stage
            ) from e

    def staging_paths(self, episode: int) -> tuple[Path, Path]:
        """Local (download, trimmed) file paths for an episode."""
        staging_dir = Path(self.config.staging_dir)
        return (
            staging_dir / f"sse-{episode}.download.mp3",
            staging_dir / f"sse-{episode}.trimmed.mp3",
        )

    @staticmethod
    def _cleanup(*paths: Path) -> None:
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to remove staging file {path}: {e}")

    @log_function(logger_name="sse_quotes.pipeline")
    async def cut(self, episode: int) -> tuple[bool, str]:
        """
        Publish the trimmed intro audio of an episode.

        Returns:
            (skipped, audio_url): skipped is True when the audio was already uploaded
        """
        bucket = self.config.audio_bucket
        key = audio_key(episode)

        with self._stage(episode, EpisodeStage.CHECK_AUDIO):
            await self.storage.ensure_bucket(bucket)
            exists = await self.storage.exists_at(bucket, key)

        if exists:
            logger.info(f"Episode {episode}: audio already uploaded, skipping cut")
            return True, self.storage.public_url(bucket, key)

        raw_path, trimmed_path = self.staging_paths(episode)
        try:
            with self._stage(episode, EpisodeStage.DOWNLOAD):
                await self._download(
                    self.config.source_url(episode),
                    raw_path,
                    timeout=self.config.download_timeout,
                )

            with self._stage(episode, EpisodeStage.TRIM):
                await self._trim(
                    raw_path,
                    trimmed_path,
                    start_seconds=self.config.trim_start_seconds,
                    end_seconds=self.config.trim_end_seconds,
                )

            with self._stage(episode, EpisodeStage.UPLOAD_AUDIO):
                audio_url = await self.storage.upload_file(
                    bucket,
                    key,
                    trimmed_path,
                    public=True,
                    content_type=AUDIO_CONTENT_TYPE,
                )
        finally:
            self._cleanup(raw_path, trimmed_path)

        logger.info(f"Episode {episode}: audio uploaded to {audio_url}")
        return False, audio_url

    @log_function(logger_name="sse_quotes.pipeline")
    async def transcribe(self, episode: int) -> tuple[bool, Optional[str]]:
        """
        Transcribe the published audio and store the extracted quote.

        Returns:
            (skipped, quote): quote is None when the transcript already existed
        """
        if self.speech_client is None:
            raise ConfigurationError("No speech client configured for transcription")

        bucket = self.config.transcript_bucket
        key = transcript_key(episode)
        audio_bucket = self.config.audio_bucket
        source_key = audio_key(episode)

        with self._stage(episode, EpisodeStage.CHECK_TRANSCRIPT):
            await self.storage.ensure_bucket(bucket)
            exists = await self.storage.exists_at(bucket, key)
            if not exists and not await self.storage.exists_at(audio_bucket, source_key):
                raise StorageError(
                    "audio not published; run cut first",
                    bucket=audio_bucket,
                    key=source_key,
                )

        if exists:
            logger.info(f"Episode {episode}: transcript already uploaded, skipping")
            return True, None

        audio_url = self.storage.public_url(audio_bucket, source_key)

        with self._stage(episode, EpisodeStage.TRANSCRIBE):
            text = await transcribe_audio(
                audio_url,
                self.speech_client,
                poll_interval=self.config.poll_interval,
                max_poll_duration=self.config.max_poll_duration,
                sleep=self._sleep,
            )

        with self._stage(episode, EpisodeStage.EXTRACT):
            quote = extract_quote(text)

        with self._stage(episode, EpisodeStage.UPLOAD_TRANSCRIPT):
            await self.storage.upload_text(bucket, key, quote)

        logger.info(f"Episode {episode}: {quote}")
        return False, quote

    async def run(self, episode: int) -> EpisodeResult:
        """Cut then transcribe one episode."""
        audio_skipped, audio_url = await self.cut(episode)
        transcript_skipped, quote = await self.transcribe(episode)
        logger.debug(f"Episode {episode}: {EpisodeStage.DONE.value}")
        return EpisodeResult(
            episode=episode,
            audio_skipped=audio_skipped,
            transcript_skipped=transcript_skipped,
            audio_url=audio_url,
            quote=quote,
        )
