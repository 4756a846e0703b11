"""
Audio download for podcast episodes.

Streams the source mp3 into a local staging file using browser headers (the
podcast CDN rejects some default client user agents). The download is only
reported complete once the destination file has been flushed, synced and
closed, so the next stage never reads a partially written file.
"""

import asyncio
import logging
import os
from pathlib import Path

import requests

from sse_quotes.exceptions import DownloadError
from sse_quotes.logger import log_function


logger = logging.getLogger("sse_quotes.ingestion")

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Accept": "audio/mpeg, audio/*, */*",
    "Accept-Language": "en-US,en;q=0.9",
}

CHUNK_SIZE = 8192


def _stream_to_file(url: str, destination: Path, timeout: float) -> int:
    """Blocking download; returns the number of bytes on disk."""
    destination.parent.mkdir(parents=True, exist_ok=True)

    with requests.get(url, stream=True, headers=BROWSER_HEADERS, timeout=timeout) as response:
        response.raise_for_status()

        with open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    f.write(chunk)
            f.flush()
            os.fsync(f.fileno())

    return destination.stat().st_size


@log_function(logger_name="sse_quotes.ingestion", log_args=True)
async def download_audio(url: str, destination: Path, timeout: float = 120.0) -> Path:
    """
    Download episode audio to a local staging file.

    Args:
        url: Source audio URL
        destination: Staging file to write
        timeout: Connect/read timeout in seconds

    Returns:
        The destination path, after the file has been closed

    Raises:
        DownloadError: On HTTP errors, network errors, empty bodies or local write errors
    """
    destination = Path(destination)
    try:
        size = await asyncio.to_thread(_stream_to_file, url, destination, timeout)
    except requests.exceptions.RequestException as e:
        raise DownloadError(f"Download of {url} failed: {e}") from e
    except OSError as e:
        raise DownloadError(f"Could not write {destination}: {e}") from e

    if size == 0:
        raise DownloadError(f"Download of {url} returned an empty body")

    logger.debug(f"Downloaded {url} to {destination} ({size:,} bytes)")
    return destination
