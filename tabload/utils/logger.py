# tabload/utils/logger.py
"""
Logging setup for tabload

Console output is plain text at DEBUG and one JSON object per line
otherwise. Records emitted inside ``run_context`` carry the run's fields
(run id, source, table) so that interleaved runs can be told apart.
"""

import json
import logging
import logging.handlers
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

_run_fields: ContextVar[Dict[str, Any]] = ContextVar("tabload_run_fields", default={})

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    'message', 'asctime'
}

_QUIET_LIBRARIES = ('urllib3', 'requests', 'snowflake', 'openpyxl')


@contextmanager
def run_context(**fields: Any) -> Iterator[Dict[str, Any]]:
    """
    Attach fields to every record logged in this context

    Nested contexts extend the enclosing one.
    """
    merged = {**_run_fields.get(), **fields}
    token = _run_fields.set(merged)
    try:
        yield merged
    finally:
        _run_fields.reset(token)


class RunContextFilter(logging.Filter):
    """Copies the active run fields onto each record"""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _run_fields.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, extras included"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
            'thread': record.threadName
        }

        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                entry[key] = value

        return json.dumps(entry, default=str)


class PipelineLogger:
    """
    Configures the root logger for a tabload process

    Provides:
    - A stderr console handler, so stdout only carries run results
    - Rotating tabload.log and errors.log files when a log directory is given
    - Run context fields on every handler
    """

    def __init__(self, log_level: str = "INFO", log_dir: Optional[Path] = None):
        self.log_level = log_level.upper()
        self.log_dir = Path(log_dir) if log_dir else None
        self._configure_logging()

    def _configure_logging(self) -> None:
        root_logger = logging.getLogger()
        root_logger.setLevel(self.log_level)
        root_logger.handlers.clear()

        context_filter = RunContextFilter()

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(self.log_level)
        if self.log_level == "DEBUG":
            console_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
        else:
            console_handler.setFormatter(JSONFormatter())
        console_handler.addFilter(context_filter)
        root_logger.addHandler(console_handler)

        if self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            for filename, level, max_mb, backups in (
                ('tabload.log', logging.INFO, 50, 10),
                ('errors.log', logging.ERROR, 10, 5),
            ):
                handler = logging.handlers.RotatingFileHandler(
                    filename=self.log_dir / filename,
                    maxBytes=max_mb * 1024 * 1024,
                    backupCount=backups,
                    encoding='utf-8'
                )
                handler.setLevel(level)
                handler.setFormatter(JSONFormatter())
                handler.addFilter(context_filter)
                root_logger.addHandler(handler)

        for name in _QUIET_LIBRARIES:
            logging.getLogger(name).setLevel(logging.WARNING)


class PerformanceLogger:
    """
    Stage timings and row volumes, logged under ``performance.<name>``

    Durations use a monotonic clock. When an ended operation reports
    ``rows_written`` the throughput is logged with it.
    """

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(f"performance.{logger_name}")
        self.start_times: Dict[str, float] = {}

    def start_operation(self, operation_name: str) -> None:
        self.start_times[operation_name] = time.perf_counter()
        self.logger.debug(f"Started operation: {operation_name}")

    def end_operation(self, operation_name: str, **extra_metrics) -> float:
        """
        Stop timing an operation and log its metrics

        Returns:
            Duration in seconds, 0.0 if the operation was never started
        """
        started = self.start_times.pop(operation_name, None)
        if started is None:
            self.logger.warning(f"Operation {operation_name} was not started")
            return 0.0

        duration = time.perf_counter() - started
        metrics = {
            'operation': operation_name,
            'duration_seconds': round(duration, 3),
            **extra_metrics
        }
        rows = extra_metrics.get('rows_written')
        if rows and duration > 0:
            metrics['rows_per_second'] = round(rows / duration, 1)

        self.logger.info(f"Completed operation: {operation_name}", extra=metrics)
        return duration

    def log_data_metrics(self, **metrics) -> None:
        self.logger.info("Data metrics", extra={'metrics_type': 'data', **metrics})


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module, usually called with __name__"""
    return logging.getLogger(name)


def setup_pipeline_logging(log_level: str = "INFO", log_dir: Optional[str] = None) -> None:
    """Configure logging once at process start"""
    PipelineLogger(log_level=log_level, log_dir=Path(log_dir) if log_dir else None)


class timed_operation:
    """
    Context manager timing a block through PerformanceLogger

    Usage:
        with timed_operation("type_inference", logger) as timer:
            ...
        timer.duration
    """

    def __init__(self, operation_name: str, logger: logging.Logger):
        self.operation_name = operation_name
        self.duration = 0.0
        self.performance_logger = PerformanceLogger(logger.name)

    def __enter__(self):
        self.performance_logger.start_operation(self.operation_name)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = self.performance_logger.end_operation(
            self.operation_name,
            success=exc_type is None,
            error_type=exc_type.__name__ if exc_type else None
        )
        return False
