import asyncio
import logging
from typing import Protocol

from sse_quotes.exceptions import ConfigurationError
from sse_quotes.logger import log_function
from sse_quotes.models import (
    BatchSummary,
    EpisodeFailure,
    EpisodeResult,
    EpisodeStage,
)


logger = logging.getLogger("sse_quotes.pipeline")

DEFAULT_MAX_CONCURRENCY = 8


class EpisodeRunner(Protocol):
    async def run(self, episode: int) -> EpisodeResult: ...


@log_function(logger_name="sse_quotes.pipeline", level=logging.INFO)
async def run_batch(
    from_episode: int,
    to_episode: int,
    pipeline: EpisodeRunner,
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> BatchSummary:
    """
    Run the episode pipeline for every episode in ``[from_episode, to_episode]``.

    Episodes run concurrently (at most ``max_concurrency`` at a time) and are
    isolated from each other: a failing episode is recorded in the summary and
    never cancels or delays its siblings. The call returns once every episode
    has either succeeded or failed.

    Args:
        from_episode: First episode number (inclusive)
        to_episode: Last episode number (inclusive)
        pipeline: Object whose ``run(episode)`` coroutine processes one episode
        max_concurrency: Maximum number of episodes in flight

    Returns:
        BatchSummary: Successes and failures; failures in completion order.

    Raises:
        ConfigurationError: If max_concurrency is below 1
    """
    if max_concurrency < 1:
        raise ConfigurationError(f"Max concurrency must be at least 1, got {max_concurrency}")

    summary = BatchSummary()
    if from_episode > to_episode:
        logger.info(f"Empty episode range {from_episode}-{to_episode}, nothing to do")
        return summary

    semaphore = asyncio.Semaphore(max_concurrency)

    async def _settle(episode: int) -> None:
        async with semaphore:
            try:
                result = await pipeline.run(episode)
            except Exception as e:
                stage = getattr(e, "stage", None)
                if not isinstance(stage, EpisodeStage):
                    stage = None
                summary.failures.append(EpisodeFailure(episode=episode, stage=stage, error=e))
                logger.warning(f"Episode {episode} failed: {type(e).__name__}: {e}")
            else:
                summary.succeeded.append(result)

    logger.info(
        f"=== BATCH STARTED: episodes {from_episode}-{to_episode} "
        f"(concurrency {max_concurrency}) ==="
    )
    await asyncio.gather(*(_settle(n) for n in range(from_episode, to_episode + 1)))
    logger.info(
        f"=== BATCH FINISHED: {summary.success_count} succeeded, "
        f"{summary.failure_count} failed ==="
    )
    return summary


def format_summary(summary: BatchSummary) -> str:
    """Human-readable batch report."""
    lines = [f"{'=' * 60}", "Batch completed:"]
    lines.append(f"  Processed: {summary.processed_count}")
    lines.append(f"  Succeeded: {summary.success_count}")

    skipped = sum(1 for r in summary.succeeded if r.audio_skipped and r.transcript_skipped)
    if skipped:
        lines.append(f"    (already complete: {skipped})")

    lines.append(f"  Failed: {summary.failure_count}")
    for failure in sorted(summary.failures, key=lambda f: f.episode):
        lines.append(f"    - {failure.describe()}")
    return "\n".join(lines)


def print_summary(summary: BatchSummary) -> None:
    print(format_summary(summary))
