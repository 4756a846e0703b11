"""Exception hierarchy for the episode pipeline."""

from typing import Optional


class SSEQuotesError(Exception):
    """Base error for sse_quotes."""


class ConfigurationError(SSEQuotesError):
    """Raised when configuration or CLI inputs are invalid."""


class PipelineError(SSEQuotesError):
    """Raised when a stage of an episode pipeline fails.

    ``episode`` and ``stage`` are filled in by the pipeline when the error
    crosses a stage boundary, so the batch summary can say where it broke.
    """

    def __init__(
        self,
        message: str,
        *,
        episode: Optional[int] = None,
        stage=None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.episode = episode
        self.stage = stage

    def __str__(self) -> str:
        return self.message


class DownloadError(PipelineError):
    """Source audio could not be fetched or written to the staging file."""


class TrimError(PipelineError):
    """The staged audio could not be cut to the configured window."""


class StorageError(PipelineError):
    """An object storage call failed for a reason other than "not found"."""

    def __init__(
        self,
        message: str,
        *,
        bucket: Optional[str] = None,
        key: Optional[str] = None,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.bucket = bucket
        self.key = key


class TranscriptionError(PipelineError):
    """A remote transcription job could not be submitted, polled or fetched, or it failed."""

    def __init__(self, message: str, *, job_id: Optional[str] = None, **kwargs) -> None:
        if job_id:
            message = f"job {job_id}: {message}"
        super().__init__(message, **kwargs)
        self.job_id = job_id


class TranscriptionTimeoutError(TranscriptionError, TimeoutError):
    """A transcription job stayed in progress longer than the allowed poll duration."""


class ExtractionError(PipelineError):
    """The transcript does not contain the expected quote."""
