# tabload/utils/exceptions.py
"""
Exception hierarchy for tabload

Each stage of a run raises its own PipelineError subclass, so callers can
tell a bad option from an unreachable source or a refused row. Errors
carry a machine-readable code and a context dict that ends up in the
structured logs and in the run result.
"""

import csv
import subprocess
from typing import Any, Dict, List, Optional, Tuple, Type


class PipelineError(Exception):
    """
    Base exception for all tabload errors

    Args:
        message: Human-readable error message
        error_code: Machine-readable code, the class name by default
        context: Where it happened (source, row, table...)
        cause: The underlying exception, if any
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or type(self).__name__
        self.context = dict(context) if context else {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error_type': type(self).__name__,
            'error_code': self.error_code,
            'message': self.message,
            'context': self.context,
            'cause': str(self.cause) if self.cause else None
        }

    def __str__(self) -> str:
        parts = [f"{self.error_code}: {self.message}"]
        if self.context:
            details = ", ".join(f"{key}={value}" for key, value in self.context.items())
            parts.append(f"(Context: {details})")
        if self.cause:
            parts.append(f"(Caused by: {self.cause})")
        return " ".join(parts)


class ConfigurationError(PipelineError):
    """
    Raised for bad or missing caller input, always before any I/O

    Examples:
    - Unrecognized source type token
    - Malformed rows/cols range specification
    - Invalid Y/N toggles or quote characters
    - Missing Snowflake credentials
    """
    pass


class SchemaMismatchError(ConfigurationError):
    """
    Raised when supplied column types do not line up with the columns

    Examples:
    - 3 header names supplied with 2 type tokens
    - Type list length differs from the header row read from the data
    - Schema width differs from the width of the data rows
    """
    pass


class SourceAccessError(PipelineError):
    """Raised when the source cannot be fetched or opened"""
    pass


class FetchError(SourceAccessError):
    """
    Raised when an HTTP source cannot be retrieved

    Examples:
    - Network connectivity issues
    - Non-2xx responses
    - Timeouts
    """
    pass


class NotFoundError(SourceAccessError):
    """Raised when a local source path does not exist or cannot be opened"""
    pass


class ConversionError(PipelineError):
    """
    Raised when a legacy XLS source cannot be converted to XLSX

    Examples:
    - Running on a platform without the converter
    - LibreOffice missing or exiting with an error
    - Converter produced no output file
    """
    pass


class MalformedRowError(PipelineError):
    """
    Raised when a reader produces an inconsistent record

    Examples:
    - Row width differs from the width of the first row
    - Header requested from an empty source
    """
    pass


class LoaderError(PipelineError):
    """
    Raised during destination operations

    Examples:
    - Snowflake connection failures
    - SQL execution errors
    """
    pass


class TableCreationError(LoaderError):
    """Raised when the destination rejects the table definition"""
    pass


class ExportError(LoaderError):
    """Raised when writing rows fails and the run cannot continue"""
    pass


class DestinationConnectionError(LoaderError):
    """Raised when the destination connection itself is unusable"""
    pass


class RowRejectedError(LoaderError):
    """
    Raised by a batch writer when one row of a batch is refused

    Rows before ``row_index`` were written, the row at ``row_index`` was
    rejected and rows after it were not attempted.
    """

    def __init__(
        self,
        message: str,
        row_index: int,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message, error_code=error_code, context=context, cause=cause)
        self.row_index = row_index


class RowSkipped(PipelineError):
    """
    Non-fatal record of a row dropped under row-error tolerance

    Never raised; collected and counted by ErrorCollector.
    """
    pass


# Builtin exception types and the pipeline error each one becomes,
# checked in order so subclasses must precede their bases
_EXCEPTION_MAP: List[Tuple[Tuple[Type[BaseException], ...], Type[PipelineError], str, str]] = [
    ((ConnectionError, TimeoutError), FetchError, "NETWORK_ERROR", "Network error"),
    ((FileNotFoundError,), NotFoundError, "FILE_NOT_FOUND", "File not found"),
    ((PermissionError,), SourceAccessError, "PERMISSION_DENIED", "Permission denied"),
    ((subprocess.SubprocessError,), ConversionError, "CONVERTER_FAILED", "Converter failed"),
    ((csv.Error, UnicodeDecodeError), MalformedRowError, "UNREADABLE_ROW", "Unreadable data"),
    ((ValueError,), ConfigurationError, "VALIDATION_ERROR", "Invalid value"),
]


def handle_pipeline_exception(
    func_name: str,
    exception: Exception,
    context: Optional[Dict[str, Any]] = None
) -> PipelineError:
    """
    Convert an arbitrary exception into a PipelineError

    PipelineErrors are returned unchanged. Anything else is wrapped in the
    first matching class of ``_EXCEPTION_MAP``, or in a plain PipelineError
    with code ``UNKNOWN_ERROR``.

    Args:
        func_name: Operation in which the exception was raised
        exception: Original exception
        context: Additional context information
    """
    if isinstance(exception, PipelineError):
        return exception

    error_context = {'function': func_name, **(context or {})}

    for types, error_class, code, label in _EXCEPTION_MAP:
        if isinstance(exception, types):
            return error_class(
                f"{label} in {func_name}: {exception}",
                error_code=code,
                context=error_context,
                cause=exception
            )

    return PipelineError(
        f"Unexpected error in {func_name}: {exception}",
        error_code="UNKNOWN_ERROR",
        context=error_context,
        cause=exception
    )


class ErrorCollector:
    """
    Utility class for collecting skipped rows

    Every error is counted, but only the first ``max_retained`` are kept
    so that a badly broken source cannot exhaust memory.
    """

    def __init__(self, max_retained: int = 100):
        self.max_retained = max_retained
        self.errors: List[PipelineError] = []
        self._error_count = 0

    def add_error(self, error: Exception, context: Optional[Dict[str, Any]] = None):
        """Add an error to the collection"""
        self._error_count += 1
        if len(self.errors) >= self.max_retained:
            return

        if isinstance(error, PipelineError):
            if context:
                error.context.update(context)
            self.errors.append(error)
        else:
            pipeline_error = handle_pipeline_exception("batch_operation", error, context)
            self.errors.append(pipeline_error)

    @property
    def has_errors(self) -> bool:
        """Check if any errors were collected"""
        return self._error_count > 0

    @property
    def error_count(self) -> int:
        """Get total number of errors, including ones not retained"""
        return self._error_count

    def get_summary(self) -> Dict[str, Any]:
        """Get summary of collected errors"""
        return {
            'error_count': self.error_count,
            'retained': len(self.errors),
            'errors': [error.to_dict() for error in self.errors]
        }
