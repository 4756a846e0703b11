from __future__ import annotations

import logging
import re
from pathlib import Path

import pytest

from sse_quotes.config import PipelineConfig
from sse_quotes.models import JobStatus, TranscriptionJob
from sse_quotes.pipeline import EpisodePipeline
from sse_quotes.storage import BaseStorage
from sse_quotes.transcription import BaseSpeechClient


QUOTE_TRANSCRIPT = (
    "Welcome to Soft Skills Engineering. It takes more than {x} to be a great "
    "software engineer. I'm Dave and with me is Jamison."
)


def episode_of(url_or_path) -> int:
    match = re.search(r"(?:sse|episode)-(\d+)", str(url_or_path))
    assert match, url_or_path
    return int(match.group(1))


class InMemoryStorage(BaseStorage):
    def __init__(self, fail_exists_for: set[int] | None = None) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.public: dict[tuple[str, str], bool] = {}
        self.uploads: list[tuple[str, str]] = []
        self.buckets: set[str] = set()
        self.calls = 0
        self.fail_exists_for = fail_exists_for or set()

    async def exists_at(self, bucket: str, key: str) -> bool:
        from sse_quotes.exceptions import StorageError

        self.calls += 1
        if episode_of(key) in self.fail_exists_for:
            raise StorageError("AccessDenied", bucket=bucket, key=key)
        return (bucket, key) in self.objects

    async def ensure_bucket(self, bucket: str) -> None:
        self.calls += 1
        self.buckets.add(bucket)

    async def upload_file(self, bucket, key, path, *, public=False, content_type="application/octet-stream") -> str:
        self.calls += 1
        self.objects[(bucket, key)] = Path(path).read_bytes()
        self.public[(bucket, key)] = public
        self.uploads.append((bucket, key))
        return self.public_url(bucket, key)

    async def upload_text(self, bucket: str, key: str, text: str) -> str:
        self.calls += 1
        self.objects[(bucket, key)] = text.encode("utf-8")
        self.public[(bucket, key)] = False
        self.uploads.append((bucket, key))
        return self.public_url(bucket, key)

    def public_url(self, bucket: str, key: str) -> str:
        return f"mem://{bucket}/{key}"


class FakeSpeechClient(BaseSpeechClient):
    """Speech client whose jobs finish after ``statuses`` and return a quote transcript."""

    def __init__(
        self,
        statuses: list[JobStatus] | None = None,
        failed_episodes: set[int] | None = None,
        garbled_episodes: set[int] | None = None,
    ) -> None:
        self.statuses = list(statuses or [])
        self.failed_episodes = failed_episodes or set()
        self.garbled_episodes = garbled_episodes or set()
        self.submitted: list[str] = []
        self.status_calls = 0
        self._jobs: dict[str, int] = {}

    async def submit_job(self, source_url: str) -> TranscriptionJob:
        self.submitted.append(source_url)
        job_id = f"job-{len(self.submitted)}"
        self._jobs[job_id] = episode_of(source_url)
        return TranscriptionJob(job_id=job_id, status=JobStatus.IN_PROGRESS)

    async def get_job_status(self, job_id: str) -> TranscriptionJob:
        self.status_calls += 1
        if self._jobs[job_id] in self.failed_episodes:
            return TranscriptionJob(job_id, JobStatus.FAILED, error="media could not be decoded")
        status = self.statuses.pop(0) if self.statuses else JobStatus.COMPLETE
        return TranscriptionJob(job_id, status)

    async def get_transcript_text(self, job_id: str) -> str:
        episode = self._jobs[job_id]
        if episode in self.garbled_episodes:
            return "Welcome to the show, today we answer two questions."
        return QUOTE_TRANSCRIPT.format(x=f"topic {episode}")


class StubAudio:
    """Download and trim stand-ins that write real staging files."""

    def __init__(self, fail_download: set[int] | None = None, fail_trim: set[int] | None = None) -> None:
        self.fail_download = fail_download or set()
        self.fail_trim = fail_trim or set()
        self.downloads: list[str] = []
        self.trims: list[Path] = []
        self.seen_paths: list[Path] = []

    async def download(self, url: str, destination: Path, timeout: float = 0) -> Path:
        self.downloads.append(url)
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(b"ID3" + b"\x00" * 64)
        self.seen_paths.append(destination)
        if episode_of(url) in self.fail_download:
            raise ConnectionError("connection reset by peer")
        return destination

    async def trim(self, source: Path, destination: Path, start_seconds: float = 0, end_seconds: float = 30) -> Path:
        self.trims.append(Path(source))
        destination = Path(destination)
        destination.write_bytes(Path(source).read_bytes()[:16])
        self.seen_paths.append(destination)
        if episode_of(source) in self.fail_trim:
            raise RuntimeError("ffmpeg exited with status 1")
        return destination


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture(autouse=True)
def _reset_project_logger():
    yield
    logger = logging.getLogger("sse_quotes")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture()
def config(tmp_path) -> PipelineConfig:
    return PipelineConfig(
        speech_api_key="test-key",
        audio_url_template="https://audio.example.test/sse-{episode}.mp3",
        staging_dir=str(tmp_path / "staging"),
        log_file=str(tmp_path / "logs" / "test.log"),
        poll_interval=5.0,
        max_poll_duration=None,
    )


@pytest.fixture()
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture()
def speech() -> FakeSpeechClient:
    return FakeSpeechClient()


@pytest.fixture()
def audio() -> StubAudio:
    return StubAudio()


@pytest.fixture()
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture()
def pipeline(storage, config, speech, audio, sleeper) -> EpisodePipeline:
    return EpisodePipeline(
        storage,
        config,
        speech,
        download=audio.download,
        trim=audio.trim,
        sleep=sleeper,
    )
