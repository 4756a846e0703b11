"""
Speech-to-text service clients.

The pipeline only needs three remote calls (submit a job for a URL, read the
job status, read the finished text), so the client surface is exactly that.
``AssemblyAISpeechClient`` maps the AssemblyAI SDK onto it; the SDK is
blocking, so every call is pushed to a worker thread.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import assemblyai as aai
from assemblyai import api as aai_api

from sse_quotes.exceptions import ConfigurationError
from sse_quotes.models import JobStatus, TranscriptionJob


logger = logging.getLogger("sse_quotes.transcription")

ASSEMBLYAI_STATUS_MAP = {
    "queued": JobStatus.IN_PROGRESS,
    "processing": JobStatus.IN_PROGRESS,
    "completed": JobStatus.COMPLETE,
    "error": JobStatus.FAILED,
}


def map_assemblyai_status(status) -> JobStatus:
    """Map an AssemblyAI transcript status to a JobStatus; unknown values count as failed."""
    value = getattr(status, "value", status)
    return ASSEMBLYAI_STATUS_MAP.get(str(value).lower(), JobStatus.FAILED)


class BaseSpeechClient(ABC):
    """Interface of a remote speech-to-text service."""

    @abstractmethod
    async def submit_job(self, source_url: str) -> TranscriptionJob:
        """Start transcribing the audio at ``source_url``."""

    @abstractmethod
    async def get_job_status(self, job_id: str) -> TranscriptionJob:
        """Fetch the current state of a job without waiting for it."""

    @abstractmethod
    async def get_transcript_text(self, job_id: str) -> str:
        """Fetch the text of a completed job."""


class AssemblyAISpeechClient(BaseSpeechClient):
    """AssemblyAI implementation of the speech client."""

    def __init__(self, api_key: Optional[str], language: str = "en"):
        if not api_key:
            raise ConfigurationError(
                "ASSEMBLYAI_API_KEY not found in environment variables"
            )

        aai.settings.api_key = api_key
        self.config = aai.TranscriptionConfig(
            language_code=language,
            punctuate=True,
            format_text=True,
        )
        self.transcriber = aai.Transcriber(config=self.config)

    def _fetch(self, job_id: str):
        http_client = aai.Client.get_default().http_client
        return aai_api.get_transcript(http_client, job_id)

    async def submit_job(self, source_url: str) -> TranscriptionJob:
        transcript = await asyncio.to_thread(self.transcriber.submit, source_url)
        logger.debug(f"AssemblyAI accepted {source_url} as job {transcript.id}")
        return TranscriptionJob(
            job_id=transcript.id,
            status=map_assemblyai_status(transcript.status),
            error=transcript.error,
        )

    async def get_job_status(self, job_id: str) -> TranscriptionJob:
        response = await asyncio.to_thread(self._fetch, job_id)
        return TranscriptionJob(
            job_id=job_id,
            status=map_assemblyai_status(response.status),
            error=getattr(response, "error", None),
        )

    async def get_transcript_text(self, job_id: str) -> str:
        response = await asyncio.to_thread(self._fetch, job_id)
        return response.text or ""
