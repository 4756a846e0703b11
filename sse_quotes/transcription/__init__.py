# Transcription module - remote speech-to-text jobs and quote extraction

from sse_quotes.transcription.speech_api import (
    AssemblyAISpeechClient,
    BaseSpeechClient,
    map_assemblyai_status,
)
from sse_quotes.transcription.transcript import transcribe_audio
from sse_quotes.transcription.quote import (
    QUOTE_CLOSING_ANCHOR,
    QUOTE_OPENING_ANCHOR,
    QUOTE_PREFIX,
    QUOTE_SUFFIX,
    extract_quote,
)

# Main public API - these are the functions other modules should use
__all__ = [
    "AssemblyAISpeechClient",
    "BaseSpeechClient",
    "map_assemblyai_status",
    "transcribe_audio",
    "extract_quote",
    "QUOTE_OPENING_ANCHOR",
    "QUOTE_CLOSING_ANCHOR",
    "QUOTE_PREFIX",
    "QUOTE_SUFFIX",
]
