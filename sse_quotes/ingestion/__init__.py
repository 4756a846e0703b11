"""
Ingestion package: getting episode audio ready for transcription.

1. Audio download (audio_scrap.py):
   - Streams the source mp3 into a local staging file
   - Returns only once the file is closed on disk

2. Trim (trim.py):
   - Cuts the staged audio to the intro window (0-30s by default)
"""

from .audio_scrap import download_audio
from .trim import trim_audio

__all__ = ["download_audio", "trim_audio"]
