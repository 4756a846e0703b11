"""
Centralized Logging Utilities and Decorators

Provides reusable logging setup and function decorators for consistent logging
across the sse_quotes project.

Usage:
    from sse_quotes.logger import setup_logging, log_function

    # Setup logging once at startup (child loggers inherit the handlers)
    logger = setup_logging(
        logger_name="sse_quotes",
        log_file="logs/sse_quotes.log",
        verbose=True
    )

    # Decorate functions or coroutines for automatic logging
    @log_function(logger_name="sse_quotes.pipeline", log_args=True)
    async def cut(episode):
        ...
"""

import functools
import inspect
import logging
import time
from pathlib import Path
from typing import Optional, Callable, Any


ROOT_LOGGER_NAME = "sse_quotes"


def setup_logging(
    logger_name: str = ROOT_LOGGER_NAME,
    log_file: Optional[str] = "logs/sse_quotes.log",
    verbose: bool = False,
    level: int = logging.INFO,
) -> logging.Logger:
    """
    Set up logging with file and optional console handlers.

    Args:
        logger_name: Name for the logger (default: "sse_quotes")
        log_file: Path to log file, or None to skip the file handler
        verbose: If True, add console handler with DEBUG level (default: False)
        level: Base logging level (default: logging.INFO)

    Returns:
        Configured logger instance

    Example:
        logger = setup_logging("sse_quotes", "logs/sse_quotes.log", verbose=True)
        logger.info("Batch started")
    """
    logger = logging.getLogger(logger_name)

    # Avoid adding multiple handlers if already configured
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG if verbose else level)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # File handler for detailed logging
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    # Console handler streams stage progress in verbose mode
    if verbose:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(console_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger


def _resolve_logger(logger_name: str, log_file: Optional[str], func_name: str, level: int):
    if log_file:
        return setup_logging(
            logger_name=f"{logger_name}.{func_name}",
            log_file=log_file,
            level=level,
        )
    return logging.getLogger(logger_name)


def _entry_message(func_name: str, log_args: bool, args: tuple, kwargs: dict) -> str:
    log_msg = f"Calling {func_name}"
    if log_args and (args or kwargs):
        args_repr = [repr(a) for a in args]
        kwargs_repr = [f"{k}={v!r}" for k, v in kwargs.items()]
        log_msg += f" with args: {', '.join(args_repr + kwargs_repr)}"
    return log_msg


def log_function(
    logger_name: Optional[str] = None,
    log_file: Optional[str] = None,
    level: int = logging.DEBUG,
    log_args: bool = False,
    log_result: bool = False,
    log_execution_time: bool = True,
) -> Callable:
    """
    Decorator to automatically log function entry, exit, execution time, and exceptions.

    Works on plain functions and on coroutine functions; for coroutines the
    timer spans the awaited body, not the creation of the coroutine object.

    Args:
        logger_name: Custom logger name (if None, uses the decorated function's module name)
        log_file: Optional custom log file path (if None, uses existing logger config)
        level: Log level for entry/exit messages (default: logging.DEBUG)
        log_args: If True, log function arguments (default: False)
        log_result: If True, log return value (default: False)
        log_execution_time: If True, log execution duration (default: True)

    Returns:
        Decorated function with logging

    Example:
        @log_function(logger_name="sse_quotes.storage", log_args=True)
        async def exists_at(self, bucket, key):
            ...
    """

    def decorator(func: Callable) -> Callable:
        name = logger_name or func.__module__
        func_name = func.__name__

        def _completed(logger: logging.Logger, start_time: float, result: Any) -> None:
            completion_msg = f"Completed {func_name}"
            if log_execution_time:
                completion_msg += f" in {time.time() - start_time:.2f}s"
            if log_result:
                completion_msg += f" with result: {result!r}"
            logger.log(level, completion_msg)

        def _failed(logger: logging.Logger, start_time: float, exc: Exception) -> None:
            # Episode failures are reported by the orchestrator; traceback at DEBUG only
            logger.debug(
                f"Exception in {func_name} after {time.time() - start_time:.2f}s: "
                f"{type(exc).__name__}: {exc}",
                exc_info=True,
            )

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs) -> Any:
                logger = _resolve_logger(name, log_file, func_name, level)
                logger.log(level, _entry_message(func_name, log_args, args, kwargs))
                start_time = time.time()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _failed(logger, start_time, e)
                    raise
                _completed(logger, start_time, result)
                return result

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger = _resolve_logger(name, log_file, func_name, level)
            logger.log(level, _entry_message(func_name, log_args, args, kwargs))
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _failed(logger, start_time, e)
                raise
            _completed(logger, start_time, result)
            return result

        return wrapper

    return decorator

