"""
Remote transcription job polling.

A job is submitted once, then its status is read every ``poll_interval``
seconds until it leaves the in-progress state. Jobs take minutes, so a fixed
interval is enough; there is no backoff and no automatic retry.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from sse_quotes.exceptions import TranscriptionError, TranscriptionTimeoutError
from sse_quotes.logger import log_function
from sse_quotes.models import JobStatus
from .speech_api import BaseSpeechClient


logger = logging.getLogger("sse_quotes.transcription")

DEFAULT_POLL_INTERVAL = 5.0


@log_function(logger_name="sse_quotes.transcription", log_args=True)
async def transcribe_audio(
    source_url: str,
    client: BaseSpeechClient,
    *,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    max_poll_duration: Optional[float] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> str:
    """
    Transcribe the audio at ``source_url`` and return the transcript text.

    Args:
        source_url: Publicly reachable audio URL
        client: Speech service client
        poll_interval: Seconds to wait before each status check
        max_poll_duration: Give up after this many seconds of polling (None: wait forever)
        sleep: Awaitable delay, injectable for tests
        clock: Monotonic clock used for the poll deadline

    Returns:
        Transcript text of the completed job

    Raises:
        TranscriptionError: If submission, polling or fetching fails, or the job fails
        TranscriptionTimeoutError: If the job is still running after max_poll_duration
    """
    try:
        job = await client.submit_job(source_url)
    except Exception as e:
        raise TranscriptionError(f"Submission of {source_url} failed: {e}") from e

    job_id = job.job_id
    logger.info(f"Transcription job {job_id} started for {source_url}")

    started = clock()
    while job.status is JobStatus.IN_PROGRESS:
        if max_poll_duration is not None and clock() - started >= max_poll_duration:
            raise TranscriptionTimeoutError(
                f"still in progress after {max_poll_duration:g}s", job_id=job_id
            )
        logger.debug(f"Job {job_id} is in progress...")
        await sleep(poll_interval)
        try:
            job = await client.get_job_status(job_id)
        except Exception as e:
            raise TranscriptionError(f"Status check failed: {e}", job_id=job_id) from e

    if job.status is JobStatus.FAILED:
        raise TranscriptionError(
            f"Job failed: {job.error or 'no detail from speech service'}",
            job_id=job_id,
        )

    logger.info(f"Transcription job {job_id} finished")
    try:
        return await client.get_transcript_text(job_id)
    except Exception as e:
        raise TranscriptionError(
            f"Transcript retrieval failed: {e}", job_id=job_id
        ) from e
