"""
Structured logging system for SignalScore.

Provides centralized logging with multiple output destinations,
log levels, and metrics tracking for monitoring scoring runs.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for monitoring score recomputation health.
    """

    def __init__(
        self,
        name: str = "signalscore",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()  # Remove existing handlers
        self.logger.propagate = False

        self.metrics = {
            "entities_scored": 0,
            "entities_failed": 0,
            "signals_scored": 0,
            "batches_run": 0,
            "errors_by_type": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"signalscore_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        """Internal logging method with context."""
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_entity_scored(self, signal_count: int):
        """Record one successfully scored and persisted entity."""
        self.metrics["entities_scored"] += 1
        self.metrics["signals_scored"] += signal_count

    def record_entity_failure(self, error_type: str):
        """Record an entity whose recompute failed."""
        self.metrics["entities_failed"] += 1

        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def record_batch(self):
        """Increment batch run counter."""
        self.metrics["batches_run"] += 1

    def get_metrics(self) -> dict:
        """Return current metrics."""
        metrics_copy = self.metrics.copy()
        metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])

        attempted = metrics_copy["entities_scored"] + metrics_copy["entities_failed"]
        if attempted > 0:
            metrics_copy["success_rate"] = round(
                metrics_copy["entities_scored"] / attempted, 3
            )

        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        scored = metrics["entities_scored"]
        attempted = scored + metrics["entities_failed"]
        overall_rate = 0
        if attempted > 0:
            overall_rate = round(scored / attempted * 100, 1)

        self.info("=== Scoring Session Metrics ===")
        self.info(f"Batches: {metrics['batches_run']}")
        self.info(f"Entities: {scored}/{attempted} ({overall_rate}% success)")
        self.info(f"Signals scored: {metrics['signals_scored']}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "signalscore",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level; falls back to SIGNALSCORE_LOG_LEVEL, then INFO
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        if level is None:
            level = os.getenv("SIGNALSCORE_LOG_LEVEL", "INFO")
        if "log_dir" not in kwargs and os.getenv("SIGNALSCORE_LOG_DIR"):
            kwargs["log_dir"] = Path(os.environ["SIGNALSCORE_LOG_DIR"])
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
