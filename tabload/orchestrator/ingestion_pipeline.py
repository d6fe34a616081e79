# tabload/orchestrator/ingestion_pipeline.py
"""
Run coordinator: resolve the source, build the schema, create the table
and export the coerced rows
"""

import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from tabload.config.ingest_options import IngestOptions
from tabload.config.settings import PipelineConfig, settings
from tabload.extractors.source_resolver import SourceResolver
from tabload.loaders.batch_exporter import BatchExporter, ExportResult
from tabload.loaders.snowflake_loader import SnowflakeLoader
from tabload.models.table_schema import TableSchema
from tabload.readers.base import RowReader
from tabload.schema.builder import TableSchemaBuilder
from tabload.schema.coercion import RowCoercer
from tabload.schema.inference import impute_types
from tabload.schema.naming import NamingPolicy
from tabload.utils.logger import get_logger, PerformanceLogger, run_context, timed_operation
from tabload.utils.exceptions import (
    ConfigurationError,
    PipelineError,
    SchemaMismatchError,
    handle_pipeline_exception,
)


@dataclass
class IngestionResult:
    """Results from an ingestion run"""
    status: str
    source: str
    table_name: str
    table_schema: Dict[str, Any]
    rows_read: int
    rows_written: int
    rows_skipped: int
    batches_written: int
    processing_time_seconds: float
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class IngestionPipeline:
    """
    Coordinates one ingestion run

    When column types have to be inferred the source is read twice: the
    first reader is consumed by inference, and a second one, resolved from
    the same SourceSpec, feeds coercion and export. The destination table
    is created only after the schema is complete, on the same connection
    that the export uses.
    """

    def __init__(
        self,
        loader: Optional[SnowflakeLoader] = None,
        resolver: Optional[SourceResolver] = None,
        pipeline_config: Optional[PipelineConfig] = None
    ):
        """
        Initialize the ingestion pipeline

        Raises:
            ConfigurationError: If no loader is given and the environment
                lacks Snowflake credentials
        """
        self.logger = get_logger(__name__)
        self.performance_logger = PerformanceLogger(__name__)
        self.config = pipeline_config or settings.pipeline

        if loader is None:
            if not settings.validate():
                raise ConfigurationError("Invalid configuration - check required environment variables")
            loader = SnowflakeLoader(settings.snowflake)

        self.loader = loader
        self.resolver = resolver or SourceResolver(self.config.work_dir)

    def run(self, options: IngestOptions) -> IngestionResult:
        """
        Ingest one source into a new table

        Returns:
            IngestionResult with row counts and the schema used

        Raises:
            PipelineError: Any failure; subclasses identify the stage
        """
        source = options.source.identifier
        run_id = uuid.uuid4().hex[:12]

        with run_context(run_id=run_id, source=source, table=options.table_name):
            return self._run(options, source)

    def _run(self, options: IngestOptions, source: str) -> IngestionResult:
        self.logger.info(f"Starting ingestion of {source} into {options.table_name}")

        try:
            with timed_operation("ingestion_run", self.logger) as timer:
                schema, reader = self._prepare(options)
                with reader:
                    export_result = self._load(options, schema, reader)
        except PipelineError as e:
            self.logger.error(f"Ingestion of {source} failed: {e}")
            raise
        except Exception as e:
            self.logger.error(f"Ingestion of {source} failed: {str(e)}", exc_info=True)
            raise handle_pipeline_exception("run", e, {'source': source}) from e
        finally:
            if self.config.cleanup_temp_files:
                self.resolver.cleanup()
            self.resolver.close()

        # the data pass re-reads the header when names came from the data
        rows_read = reader.rows_read - (0 if options.headers_supplied else 1)
        self.performance_logger.log_data_metrics(
            table=options.table_name,
            rows_read=rows_read,
            rows_written=export_result.rows_written,
            rows_skipped=export_result.rows_skipped
        )

        return IngestionResult(
            status="completed_with_skips" if export_result.rows_skipped else "completed",
            source=source,
            table_name=options.table_name,
            table_schema=schema.to_dict(),
            rows_read=rows_read,
            rows_written=export_result.rows_written,
            rows_skipped=export_result.rows_skipped,
            batches_written=export_result.batches_written,
            processing_time_seconds=timer.duration,
            errors=[error.to_dict() for error in export_result.skipped]
        )

    def _prepare(self, options: IngestOptions) -> Tuple[TableSchema, RowReader]:
        """
        Build the schema and return it with a reader positioned at the
        first data row
        """
        spec = options.source
        reader = self.resolver.resolve(spec)
        try:
            if options.headers_supplied:
                builder = TableSchemaBuilder.from_supplied(options.headers)
            else:
                policy = NamingPolicy(
                    camel_case=options.camel_case,
                    lowercase_names=options.lowercase_names
                )
                builder = TableSchemaBuilder.from_header(reader.read_header(), policy)

            if options.types_supplied:
                builder.apply_type_tokens(options.type_tokens)
            if builder.needs_types:
                impute_types(reader, builder, self.config.impute_threshold, options.date_format)
                reader.close()
                reader = self.resolver.resolve(spec)
                if not options.headers_supplied:
                    reader.read_header()

            schema = builder.build()
            self._check_data_width(schema, reader, options)
        except BaseException:
            reader.close()
            raise

        self.logger.info(f"Schema for {options.table_name}: {schema.to_dict()}")
        return schema, reader

    def _check_data_width(self, schema: TableSchema, reader: RowReader, options: IngestOptions) -> None:
        """
        Compare the first data row with the schema before any table exists

        Raises:
            SchemaMismatchError: If the data has a different column count
        """
        first = reader.peek()
        if first is not None and len(first) != schema.width:
            raise SchemaMismatchError(
                f"{schema.width} columns named but the data has {len(first)}",
                context={'source': options.source.identifier, 'table': options.table_name}
            )

    def _load(self, options: IngestOptions, schema: TableSchema, reader: RowReader) -> ExportResult:
        coercer = RowCoercer(schema, options.date_format)
        with self.loader.get_connection() as connection:
            self.loader.create_table(connection, options.table_name, schema)
            exporter = BatchExporter(
                self.loader.writer(connection, options.table_name, schema),
                batch_size=options.batch_size,
                tolerate_row_errors=options.tolerate_row_errors,
                pipelined=self.config.pipelined_export
            )
            result = exporter.export(coercer.coerce_rows(reader))

        self.logger.info(
            f"Exported {result.rows_written} rows to {options.table_name} "
            f"({result.rows_skipped} skipped, {result.batches_written} batches)"
        )
        return result
