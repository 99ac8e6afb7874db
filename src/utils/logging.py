"""Logging configuration for the sentiment rebalancer.

This module provides structured logging setup with configurable output format.
Decision events (verdicts, allocations) have their own JSON logs, see
``src.utils.logging_enhanced``.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Iterable

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# HTTP client chatter drowns out pipeline logs at DEBUG
NOISY_LOGGERS = ("urllib3",)


def setup_logging(
    level: str = "INFO",
    log_format: str | None = None,
    log_file: str | Path | None = None,
    quiet_loggers: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """Configure logging for the application.

    Sets up the root logger with specified level and format. Logs are
    written to stdout and, if ``log_file`` is given, appended to that file.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom format string. If None, uses default format.
        log_file: Optional file to mirror stdout logs into
        quiet_loggers: Third-party loggers capped at WARNING

    Example:
        >>> from src.utils.logging import setup_logging
        >>> setup_logging(level="DEBUG", log_file="logs/rebalancer.log")
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    logging.basicConfig(
        level=numeric_level,
        format=log_format or DEFAULT_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module."""
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: Any,
) -> None:
    """Log a message with structured context.

    Context is appended to the message in key=value format.

    Args:
        logger: Logger instance
        level: Log level (debug, info, warning, error, critical)
        message: Log message
        **context: Additional context fields

    Example:
        >>> logger = get_logger(__name__)
        >>> log_with_context(
        ...     logger, "info", "Verdict extracted",
        ...     sentiment="bullish", confidence=0.8, strategy="balanced_braces"
        ... )
        # Logs: "Verdict extracted | sentiment=bullish confidence=0.8 strategy=balanced_braces"
    """
    log_func = getattr(logger, level.lower())

    if context:
        context_str = " ".join(f"{k}={v}" for k, v in context.items())
        log_func(f"{message} | {context_str}")
    else:
        log_func(message)
