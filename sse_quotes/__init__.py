"""sse_quotes: pull the intro quote out of Soft Skills Engineering episodes."""

__version__ = "0.1.0"
