"""Logging utilities for the sse_quotes project."""

from .logging_decorator import ROOT_LOGGER_NAME, setup_logging, log_function

__all__ = ["ROOT_LOGGER_NAME", "setup_logging", "log_function"]
