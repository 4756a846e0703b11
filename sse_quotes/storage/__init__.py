"""
Storage module for the episode artifacts.

Provides the abstract storage interface and its S3 implementation. The
storage layer doubles as the idempotency gate: an artifact's presence at its
deterministic key means the stage that produces it can be skipped.
"""

from .base import BaseStorage
from .cloud import CloudStorage

__all__ = [
    "BaseStorage",
    "CloudStorage",
]
