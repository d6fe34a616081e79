# tabload/loaders/batch_exporter.py
"""
Batched, optionally pipelined export of coerced rows
"""

from abc import ABC, abstractmethod
from concurrent import futures
from concurrent.futures import ThreadPoolExecutor
from contextvars import copy_context
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from tabload.utils.logger import get_logger, PerformanceLogger
from tabload.utils.exceptions import (
    DestinationConnectionError,
    ErrorCollector,
    ExportError,
    LoaderError,
    RowRejectedError,
    RowSkipped,
)

Row = Tuple[Any, ...]


class BatchWriter(ABC):
    """Destination side of the export engine"""

    @abstractmethod
    def write_batch(self, rows: Sequence[Row]) -> None:
        """
        Append ``rows`` to the destination

        Raises:
            RowRejectedError: ``rows[:row_index]`` were written, the row at
                ``row_index`` was refused and later rows were not attempted
            DestinationConnectionError: The destination is unreachable
        """


@dataclass
class ExportResult:
    """Outcome of one export"""
    rows_written: int = 0
    rows_skipped: int = 0
    batches_written: int = 0
    skipped: List[RowSkipped] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rows_written': self.rows_written,
            'rows_skipped': self.rows_skipped,
            'batches_written': self.batches_written,
            'skipped': [error.to_dict() for error in self.skipped],
        }


class BatchExporter:
    """
    Groups rows into batches and hands them to a BatchWriter

    With ``batch_size`` 0 every row goes into a single batch. When
    ``pipelined`` is set, one background worker flushes batch N while the
    caller's iterator produces batch N+1; batches are still written in
    order and at most one flush is in flight.
    """

    def __init__(
        self,
        writer: BatchWriter,
        batch_size: int = 1000,
        tolerate_row_errors: bool = False,
        pipelined: bool = False,
        max_retained_errors: int = 100
    ):
        if batch_size < 0:
            raise ValueError("batch_size must be non-negative")
        self.writer = writer
        self.batch_size = batch_size
        self.tolerate_row_errors = tolerate_row_errors
        self.pipelined = pipelined
        self.max_retained_errors = max_retained_errors
        self.logger = get_logger(__name__)
        self.perf_logger = PerformanceLogger(__name__)

    def export(self, rows: Iterable[Row]) -> ExportResult:
        """
        Write every row

        Raises:
            ExportError: On a rejected row without tolerance, or on any
                connection failure
        """
        result = ExportResult()
        collector = ErrorCollector(self.max_retained_errors)

        self.perf_logger.start_operation("export")
        if self.pipelined:
            self._export_pipelined(rows, result, collector)
        else:
            for start, batch in self._batches(rows):
                self._flush(batch, start, result, collector)

        result.rows_skipped = collector.error_count
        result.skipped = list(collector.errors)
        if collector.has_errors:
            summary = collector.get_summary()
            self.logger.warning(
                f"Skipped {summary['error_count']} rejected rows "
                f"({summary['retained']} retained for reporting)"
            )
        self.perf_logger.end_operation(
            "export",
            rows_written=result.rows_written,
            rows_skipped=result.rows_skipped,
            batches_written=result.batches_written
        )
        return result

    def _export_pipelined(self, rows: Iterable[Row], result: ExportResult, collector: ErrorCollector) -> None:
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="tabload-export") as pool:
            pending: Optional[futures.Future] = None
            try:
                for start, batch in self._batches(rows):
                    if pending is not None:
                        pending.result()
                    pending = pool.submit(copy_context().run, self._flush, batch, start, result, collector)
            except BaseException:
                # let the in-flight flush finish before the error propagates
                if pending is not None:
                    futures.wait([pending])
                raise
            if pending is not None:
                pending.result()

    def _batches(self, rows: Iterable[Row]) -> Iterator[Tuple[int, List[Row]]]:
        batch: List[Row] = []
        start = 0
        for row in rows:
            batch.append(row)
            if self.batch_size and len(batch) == self.batch_size:
                yield start, batch
                start += len(batch)
                batch = []
        if batch:
            yield start, batch

    def _flush(self, batch: List[Row], start: int, result: ExportResult, collector: ErrorCollector) -> None:
        remaining: Sequence[Row] = batch
        offset = start
        while remaining:
            try:
                self.writer.write_batch(remaining)
            except DestinationConnectionError as e:
                raise ExportError(
                    f"destination connection failed: {e.message}",
                    context={'rows_written': result.rows_written},
                    cause=e
                ) from e
            except RowRejectedError as e:
                index = e.row_index
                result.rows_written += index
                row_number = offset + index + 1
                if not self.tolerate_row_errors:
                    raise ExportError(
                        f"row {row_number} rejected: {e.message}",
                        context={'row': row_number, 'rows_written': result.rows_written},
                        cause=e
                    ) from e
                self.logger.warning(f"Skipping row {row_number}: {e.message}")
                collector.add_error(RowSkipped(e.message, context={'row': row_number}, cause=e.cause))
                remaining = remaining[index + 1:]
                offset += index + 1
                continue
            except LoaderError as e:
                raise ExportError(
                    f"batch write failed: {e.message}",
                    context={'rows_written': result.rows_written},
                    cause=e
                ) from e

            result.rows_written += len(remaining)
            break

        result.batches_written += 1
        self.logger.debug(f"Flushed batch at row {start + 1} ({len(batch)} rows)")
