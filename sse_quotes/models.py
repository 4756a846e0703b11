"""
Data model for the episode pipeline.

An episode is a plain ``int``; every storage address and the source URL are
derived from it, so re-running a command always targets the same keys.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class EpisodeStage(Enum):
    """Per-episode pipeline states, in execution order."""

    START = "start"
    CHECK_AUDIO = "check_audio"
    DOWNLOAD = "download"
    TRIM = "trim"
    UPLOAD_AUDIO = "upload_audio"
    CHECK_TRANSCRIPT = "check_transcript"
    TRANSCRIBE = "transcribe"
    EXTRACT = "extract"
    UPLOAD_TRANSCRIPT = "upload_transcript"
    DONE = "done"
    FAILED = "failed"


class JobStatus(str, Enum):
    """Status of a remote transcription job."""

    IN_PROGRESS = "in_progress"
    COMPLETE = "transcribed"
    FAILED = "failed"


@dataclass(frozen=True)
class TranscriptionJob:
    """Snapshot of a remote speech-to-text job."""

    job_id: str
    status: JobStatus
    error: Optional[str] = None


def audio_key(episode: int) -> str:
    """Storage key of the trimmed public audio for an episode."""
    return f"sse-{episode}.mp3"


def transcript_key(episode: int) -> str:
    """Storage key of the extracted quote for an episode."""
    return f"episode-{episode}.txt"


@dataclass
class EpisodeResult:
    """Outcome of a successful episode run."""

    episode: int
    audio_skipped: bool = False
    transcript_skipped: bool = False
    audio_url: Optional[str] = None
    quote: Optional[str] = None


@dataclass
class EpisodeFailure:
    """An episode that ended in the FAILED state."""

    episode: int
    stage: Optional[EpisodeStage]
    error: BaseException

    def describe(self) -> str:
        stage = self.stage.value if self.stage else "unknown stage"
        return f"episode {self.episode} failed at {stage}: {type(self.error).__name__}: {self.error}"


@dataclass
class BatchSummary:
    """Aggregate of a batch run, filled in as episodes settle."""

    succeeded: list[EpisodeResult] = field(default_factory=list)
    failures: list[EpisodeFailure] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def processed_count(self) -> int:
        return self.success_count + self.failure_count
