"""
Quote extraction from episode transcripts.

Every episode intro contains the line "it takes more than <X> to be a great
software engineer". The speech service is unreliable about the first letter
of "takes", so the opening anchor starts mid-word.
"""

import re

from sse_quotes.exceptions import ExtractionError


QUOTE_OPENING_ANCHOR = "akes more than"
QUOTE_CLOSING_ANCHOR = "to be a great"
QUOTE_PREFIX = "It takes more than"
QUOTE_SUFFIX = "to be a great software engineer"

QUOTE_PATTERN = re.compile(
    re.escape(QUOTE_OPENING_ANCHOR) + r"(.*?)" + re.escape(QUOTE_CLOSING_ANCHOR),
    re.DOTALL,
)


def extract_quote(transcript: str) -> str:
    """
    Extract the intro quote from a transcript.

    Args:
        transcript: Full transcript text

    Returns:
        The quote, re-wrapped as "It takes more than <X> to be a great software engineer"

    Raises:
        ExtractionError: If the anchors are missing or nothing lies between them
    """
    match = QUOTE_PATTERN.search(transcript or "")
    if match is None:
        raise ExtractionError(
            f"Transcript does not contain '{QUOTE_OPENING_ANCHOR} ... {QUOTE_CLOSING_ANCHOR}'"
        )

    span = " ".join(match.group(1).split())
    if not span:
        raise ExtractionError("Quote between the anchors is empty")

    return f"{QUOTE_PREFIX} {span} {QUOTE_SUFFIX}"
