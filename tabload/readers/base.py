"""
Row Reader abstraction

A Row Reader turns one source into a lazy, one-pass sequence of raw rows,
each a list of string cells. Concrete readers only know how to produce
physical rows; skipping, header handling and the width check live here.
"""

from abc import ABC, abstractmethod
from typing import Iterator, List, Optional

from tabload.utils.exceptions import MalformedRowError, PipelineError

RawRow = List[str]


class RowReader(ABC):
    """
    Base class for all row readers

    Iterating yields RawRow lists. Once the first row has been produced the
    reader's width is fixed and every later row must have that width.
    """

    def __init__(self, source_name: str, skip: int = 0):
        self.source_name = source_name
        self.skip = skip
        self._rows: Optional[Iterator[RawRow]] = None
        self._width: Optional[int] = None
        self._record_number = 0
        self._data_started = False
        self._peeked: Optional[RawRow] = None
        self._closed = False

    @abstractmethod
    def _iter_physical_rows(self) -> Iterator[RawRow]:
        """Yield every record of the source in order, before skipping"""

    def _release(self) -> None:
        """Release the underlying resource; override when there is one"""

    @property
    def width(self) -> Optional[int]:
        """Column count established by the first row, None before that"""
        return self._width

    @property
    def rows_read(self) -> int:
        """Number of records produced so far, header included"""
        return self._record_number

    def _stream(self) -> Iterator[RawRow]:
        if self._rows is None:
            rows = self._iter_physical_rows()
            for _ in range(self.skip):
                if next(rows, None) is None:
                    break
            self._rows = rows
        return self._rows

    def _next_row(self) -> RawRow:
        if self._closed:
            raise StopIteration
        row = next(self._stream())
        self._record_number += 1
        if self._width is None:
            self._width = len(row)
        elif len(row) != self._width:
            raise MalformedRowError(
                f"row has {len(row)} fields, expected {self._width}",
                context={'source': self.source_name, 'record': self._record_number}
            )
        return row

    def read_header(self) -> List[str]:
        """
        Consume one row and return it as column names

        Raises:
            MalformedRowError: If the source has no rows
            PipelineError: If data rows were already read
        """
        if self._data_started:
            raise PipelineError(
                "header must be read before any data row",
                error_code="HEADER_AFTER_DATA",
                context={'source': self.source_name}
            )
        try:
            header = self._next_row()
        except StopIteration:
            raise MalformedRowError(
                "source has no header row",
                context={'source': self.source_name}
            ) from None
        return [name.strip() for name in header]

    def __iter__(self) -> 'RowReader':
        return self

    def peek(self) -> Optional[RawRow]:
        """
        Return the next data row without consuming it, None at the end

        The row counts as read and fixes the width, exactly as if it had
        been iterated.
        """
        if self._peeked is None:
            self._data_started = True
            try:
                self._peeked = self._next_row()
            except StopIteration:
                return None
        return self._peeked

    def __next__(self) -> RawRow:
        self._data_started = True
        if self._peeked is not None:
            row, self._peeked = self._peeked, None
            return row
        return self._next_row()

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
