from __future__ import annotations

from types import SimpleNamespace

import assemblyai as aai
import pytest

from sse_quotes.exceptions import ConfigurationError
from sse_quotes.models import JobStatus
from sse_quotes.transcription import AssemblyAISpeechClient, map_assemblyai_status


@pytest.mark.parametrize(
    "status, expected",
    [
        ("queued", JobStatus.IN_PROGRESS),
        ("processing", JobStatus.IN_PROGRESS),
        ("completed", JobStatus.COMPLETE),
        ("error", JobStatus.FAILED),
        ("something-new", JobStatus.FAILED),
        (aai.TranscriptStatus.completed, JobStatus.COMPLETE),
        (aai.TranscriptStatus.queued, JobStatus.IN_PROGRESS),
    ],
)
def test_status_mapping(status, expected) -> None:
    assert map_assemblyai_status(status) is expected


def test_missing_api_key_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        AssemblyAISpeechClient(None)


@pytest.mark.asyncio
async def test_submit_and_poll_map_sdk_objects(monkeypatch) -> None:
    client = AssemblyAISpeechClient("test-key")
    submitted = []

    def fake_submit(url):
        submitted.append(url)
        return SimpleNamespace(id="tr_123", status=aai.TranscriptStatus.queued, error=None)

    responses = iter(
        [
            SimpleNamespace(status="processing", error=None, text=None),
            SimpleNamespace(status="completed", error=None, text="It takes more than tea to be a great"),
        ]
    )
    monkeypatch.setattr(client.transcriber, "submit", fake_submit)
    monkeypatch.setattr(client, "_fetch", lambda job_id: next(responses))

    job = await client.submit_job("https://sse-mp3.s3.eu-west-1.amazonaws.com/sse-1.mp3")
    assert (job.job_id, job.status) == ("tr_123", JobStatus.IN_PROGRESS)
    assert submitted == ["https://sse-mp3.s3.eu-west-1.amazonaws.com/sse-1.mp3"]

    status = await client.get_job_status("tr_123")
    assert status.status is JobStatus.IN_PROGRESS

    assert await client.get_transcript_text("tr_123") == "It takes more than tea to be a great"
