"""
Advanced Logging Module

Provides structured logging with:
- JSON or console rendering through structlog
- Correlation ID tracking across a clustering run
- Performance timing (duration, throughput)
- Context managers for automatic timing and exception logging
"""

import contextlib
import functools
import logging
import logging.handlers
import time
from pathlib import Path
from typing import Any, Callable, Optional

import structlog
from structlog.types import EventDict, Processor


# =============================================================================
# Structured Logging Configuration
# =============================================================================


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    service_name: str = "densecluster",
    max_size_mb: int = 100,
    backup_count: int = 5,
) -> None:
    """
    Configure structured logging with structlog.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format ("json" or "console")
        log_file: Optional log file path
        service_name: Service name for log context
        max_size_mb: Rotate the log file after this many megabytes
        backup_count: Number of rotated files to keep
    """
    level = getattr(logging, log_level.upper())

    # Configure stdlib logging
    logging.basicConfig(format="%(message)s", level=level)
    logging.root.setLevel(level)

    # Add file handler if specified
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(level)
        logging.root.addHandler(file_handler)

    # Configure structlog processors
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_service_context(service_name),
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def add_service_context(service_name: str) -> Processor:
    """
    Add service-level context to all log events.

    Args:
        service_name: Service name

    Returns:
        Processor function
    """

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict["service"] = service_name
        correlation_id = LogContext.get_correlation_id()
        if correlation_id and "correlation_id" not in event_dict:
            event_dict["correlation_id"] = correlation_id
        return event_dict

    return processor


# =============================================================================
# Correlation ID Context
# =============================================================================


class LogContext:
    """
    Correlation ID tracking.

    Lets every log line emitted during one clustering run carry
    the same identifier.
    """

    _correlation_id: Optional[str] = None

    @classmethod
    def set_correlation_id(cls, correlation_id: str) -> None:
        """Set correlation ID for current context."""
        cls._correlation_id = correlation_id

    @classmethod
    def get_correlation_id(cls) -> Optional[str]:
        """Get current correlation ID."""
        return cls._correlation_id

    @classmethod
    def clear_correlation_id(cls) -> None:
        """Clear correlation ID."""
        cls._correlation_id = None

    @classmethod
    @contextlib.contextmanager
    def correlation_context(cls, correlation_id: str):
        """
        Context manager for correlation ID.

        Example:
            with LogContext.correlation_context("run-123"):
                logger.info("clustering")  # Includes correlation_id
        """
        previous_id = cls._correlation_id
        cls._correlation_id = correlation_id
        try:
            yield
        finally:
            cls._correlation_id = previous_id


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get logger with automatic correlation ID binding.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Bound logger instance
    """
    logger = structlog.get_logger(name)

    correlation_id = LogContext.get_correlation_id()
    if correlation_id:
        logger = logger.bind(correlation_id=correlation_id)

    return logger


# =============================================================================
# Performance Logger
# =============================================================================


class PerformanceLogger:
    """
    Context manager for automatic performance timing and logging.

    Tracks execution time and optional throughput metrics.
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[structlog.BoundLogger] = None,
        log_level: str = "info",
        item_count: Optional[int] = None,
        **extra_context: Any,
    ):
        """
        Initialize performance logger.

        Args:
            operation: Operation name for logging
            logger: Logger instance (creates new if None)
            log_level: Log level for output
            item_count: Number of items processed (for throughput)
            **extra_context: Additional context fields
        """
        self.operation = operation
        self.logger = logger or get_logger(__name__)
        self.log_level = log_level
        self.item_count = item_count
        self.extra_context = extra_context
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

    def __enter__(self) -> "PerformanceLogger":
        """Start timing."""
        self.start_time = time.perf_counter()
        self.logger.debug(
            "operation_started",
            operation=self.operation,
            **self.extra_context,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Stop timing and log results."""
        self.end_time = time.perf_counter()
        duration = self.end_time - self.start_time

        log_data = {
            "operation": self.operation,
            "duration_seconds": round(duration, 3),
            **self.extra_context,
        }

        if self.item_count is not None and self.item_count > 0 and duration > 0:
            log_data["item_count"] = self.item_count
            log_data["items_per_second"] = round(self.item_count / duration, 2)

        if exc_type is not None:
            log_data["error"] = str(exc_val)
            log_data["error_type"] = exc_type.__name__
            self.logger.error("operation_failed", **log_data)
        else:
            getattr(self.logger, self.log_level)("operation_completed", **log_data)

    @property
    def elapsed_time(self) -> float:
        """Get elapsed time (even if context not exited)."""
        if self.start_time is None:
            return 0.0
        end = self.end_time or time.perf_counter()
        return end - self.start_time


def timed(
    operation: Optional[str] = None,
    log_level: str = "info",
) -> Callable:
    """
    Decorator for automatic timing of functions.

    Args:
        operation: Operation name (defaults to function name)
        log_level: Log level for output

    Example:
        @timed(operation="estimate_epsilon")
        def estimate(vectors):
            ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            op_name = operation or func.__name__
            with PerformanceLogger(op_name, log_level=log_level):
                return func(*args, **kwargs)

        return wrapper

    return decorator


# =============================================================================
# Utility Functions
# =============================================================================


@contextlib.contextmanager
def log_exceptions(
    logger: Optional[structlog.BoundLogger] = None,
    operation: Optional[str] = None,
    reraise: bool = True,
):
    """
    Context manager to automatically log exceptions.

    Args:
        logger: Logger instance
        operation: Operation name for context
        reraise: Whether to reraise exception after logging

    Example:
        with log_exceptions(operation="load_points"):
            load_points(path)
    """
    log = logger or get_logger(__name__)
    try:
        yield
    except Exception as e:
        log_data = {
            "error": str(e),
            "error_type": type(e).__name__,
        }
        if operation:
            log_data["operation"] = operation

        log.error("exception_caught", **log_data, exc_info=True)

        if reraise:
            raise
