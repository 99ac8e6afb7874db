"""Enhanced logging for decision events with rotation and structured output.

This module extends the basic logging with decision-specific event logging,
log rotation, and structured JSON formatting for later analysis.
"""

import json
import logging
import logging.handlers
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class DecisionEventType(Enum):
    """Types of decision events to log."""

    # Sentiment events
    COMPLETION_REQUESTED = "completion_requested"
    COMPLETION_FAILED = "completion_failed"
    EXTRACTION_SUCCEEDED = "extraction_succeeded"
    EXTRACTION_FAILED = "extraction_failed"
    FALLBACK_USED = "fallback_used"

    # Allocation events
    ALLOCATION_CALCULATED = "allocation_calculated"
    TRANSACTIONS_GENERATED = "transactions_generated"

    # System events
    WORKFLOW_STARTED = "workflow_started"
    WORKFLOW_COMPLETED = "workflow_completed"

    # Error events
    INTERNAL_ERROR = "internal_error"


class DecisionLogger:
    """Enhanced logger for decision events with rotation and structured output.

    Features:
    - Automatic log rotation with size limits
    - Structured JSON logging for analysis
    - Separate log files for sentiment, allocation, system and error events

    Example:
        >>> logger = DecisionLogger(log_dir="logs")
        >>> logger.log_sentiment_event(
        ...     event_type=DecisionEventType.EXTRACTION_SUCCEEDED,
        ...     sentiment="bullish",
        ...     confidence=0.8,
        ... )
    """

    def __init__(
        self,
        log_dir: str | Path = "logs",
        max_bytes: int = 10 * 1024 * 1024,  # 10 MB
        backup_count: int = 30,
        enable_console: bool = False,
    ):
        """Initialize decision logger.

        Args:
            log_dir: Directory for log files
            max_bytes: Maximum size per log file (default 10 MB)
            backup_count: Number of backup files to keep (default 30)
            enable_console: Also log to console (default False)
        """
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.enable_console = enable_console

        self.sentiment_logger = self._create_rotating_logger("sentiment")
        self.allocation_logger = self._create_rotating_logger("allocation")
        self.system_logger = self._create_rotating_logger("system")
        self.error_logger = self._create_rotating_logger("errors", level=logging.ERROR)

    def _create_rotating_logger(
        self,
        name: str,
        level: int = logging.INFO,
    ) -> logging.Logger:
        """Create a rotating file logger.

        Args:
            name: Logger name and file prefix
            level: Logging level

        Returns:
            Configured logger
        """
        logger = logging.getLogger(f"decisions.{name}")
        logger.setLevel(level)
        logger.propagate = False

        for handler in list(logger.handlers):
            handler.close()
        logger.handlers = []

        log_file = self.log_dir / f"{name}.log"
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
        )
        file_handler.setLevel(level)

        # Message is already a JSON document
        formatter = logging.Formatter(
            '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "message": %(message)s}'
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        if self.enable_console:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(level)
            console_handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
            logger.addHandler(console_handler)

        return logger

    def _log_structured_event(
        self,
        logger: logging.Logger,
        event_type: DecisionEventType,
        level: str = "info",
        **data: Any,
    ) -> None:
        """Log a structured event as JSON.

        Args:
            logger: Logger instance to use
            event_type: Type of decision event
            level: Log level (default: info)
            **data: Event data fields
        """
        event = {
            "event_type": event_type.value,
            "timestamp": datetime.now().isoformat(),
            **data,
        }

        log_func = getattr(logger, level)
        log_func(json.dumps(event, default=str))

    def log_sentiment_event(
        self,
        event_type: DecisionEventType,
        sentiment: Optional[str] = None,
        confidence: Optional[float] = None,
        **extra: Any,
    ) -> None:
        """Log a sentiment-related event.

        Args:
            event_type: Type of sentiment event
            sentiment: Sentiment label (optional)
            confidence: Confidence value (optional)
            **extra: Additional event data
        """
        data: dict[str, Any] = {}

        if sentiment is not None:
            data["sentiment"] = sentiment
        if confidence is not None:
            data["confidence"] = confidence

        data.update(extra)

        self._log_structured_event(self.sentiment_logger, event_type, **data)

    def log_allocation_event(
        self,
        event_type: DecisionEventType,
        weights: dict[str, float],
        **extra: Any,
    ) -> None:
        """Log an allocation-related event.

        Args:
            event_type: Type of allocation event
            weights: Target weights {asset: weight}
            **extra: Additional event data
        """
        data = {"weights": weights}
        data.update(extra)

        self._log_structured_event(self.allocation_logger, event_type, **data)

    def log_system_event(
        self,
        event_type: DecisionEventType,
        message: str,
        **extra: Any,
    ) -> None:
        """Log a system-related event."""
        data = {"message": message}
        data.update(extra)

        self._log_structured_event(self.system_logger, event_type, **data)

    def log_error(
        self,
        event_type: DecisionEventType,
        error: str,
        **extra: Any,
    ) -> None:
        """Log an error event.

        Args:
            event_type: Type of error event
            error: Error message or description
            **extra: Additional event data
        """
        data = {"error": error}
        data.update(extra)

        self._log_structured_event(self.error_logger, event_type, level="error", **data)


# Global logger instance
_decision_logger: Optional[DecisionLogger] = None


def get_decision_logger(log_dir: str | Path = "logs") -> DecisionLogger:
    """Get or create the global decision logger instance.

    Args:
        log_dir: Directory for log files

    Returns:
        DecisionLogger instance
    """
    global _decision_logger

    if _decision_logger is None:
        _decision_logger = DecisionLogger(log_dir=log_dir)

    return _decision_logger
