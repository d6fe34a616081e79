"""Utility modules"""

from .logger import get_logger, setup_pipeline_logging, PerformanceLogger, run_context, timed_operation
from .exceptions import (
    PipelineError, ConfigurationError, SchemaMismatchError, SourceAccessError,
    FetchError, NotFoundError, ConversionError, MalformedRowError,
    LoaderError, TableCreationError, ExportError, DestinationConnectionError,
    RowRejectedError, RowSkipped, handle_pipeline_exception, ErrorCollector
)
