"""Cut the staged episode audio down to the window that holds the intro quote."""

import asyncio
import logging
from pathlib import Path

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError, CouldntEncodeError

from sse_quotes.exceptions import TrimError
from sse_quotes.logger import log_function


logger = logging.getLogger("sse_quotes.ingestion")


def _cut(source: Path, destination: Path, start_ms: int, end_ms: int) -> Path:
    audio = AudioSegment.from_file(str(source), format="mp3")
    clip = audio[start_ms:end_ms]
    destination.parent.mkdir(parents=True, exist_ok=True)
    # export() returns the open handle; close it so the file is complete on disk
    clip.export(str(destination), format="mp3").close()
    return destination


@log_function(logger_name="sse_quotes.ingestion", log_args=True)
async def trim_audio(
    source: Path,
    destination: Path,
    start_seconds: float = 0.0,
    end_seconds: float = 30.0,
) -> Path:
    """
    Write the ``[start_seconds, end_seconds)`` window of ``source`` to ``destination``.

    Raises:
        TrimError: If the source is missing or cannot be decoded or encoded
    """
    source = Path(source)
    destination = Path(destination)
    if not source.is_file():
        raise TrimError(f"Audio file not found: {source}")

    start_ms = int(start_seconds * 1000)
    end_ms = int(end_seconds * 1000)
    try:
        await asyncio.to_thread(_cut, source, destination, start_ms, end_ms)
    except (CouldntDecodeError, CouldntEncodeError, OSError) as e:
        raise TrimError(f"Could not trim {source}: {e}") from e

    logger.debug(f"Trimmed {source.name} to {start_seconds:g}s-{end_seconds:g}s")
    return destination
