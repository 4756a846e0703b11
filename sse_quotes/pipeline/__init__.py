"""
Episode processing pipeline module.

This module orchestrates the complete workflow for an episode range:
    1. Audio cut (download, trim to the intro, publish)
    2. Transcription (remote speech-to-text job on the published audio)
    3. Quote extraction and upload

Usage:
    # CLI interface
    python -m sse_quotes.pipeline run 120
    python -m sse_quotes.pipeline all 103 313 --verbose

    # Programmatic interface
    from sse_quotes.pipeline import EpisodePipeline, run_batch
    summary = asyncio.run(run_batch(103, 313, pipeline))
"""

from .orchestrator import run_batch, format_summary, print_summary
from .stages import EpisodePipeline

__all__ = [
    "EpisodePipeline",
    "run_batch",
    "format_summary",
    "print_summary",
]
