"""
Range-bounded spreadsheet reader for XLSX workbooks
"""

from datetime import date, datetime, time
from typing import Any, Iterator, Optional

from openpyxl.workbook.workbook import Workbook

from tabload.models.source_spec import CellRange
from tabload.readers.base import RawRow, RowReader
from tabload.utils.exceptions import ConfigurationError


def render_cell(value: Any) -> str:
    """
    Render an openpyxl cell value the way it reads in the sheet

    Integral floats lose their ``.0``, dates render as ISO dates and
    datetimes at midnight render as plain dates.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class SpreadsheetRowReader(RowReader):
    """
    Reads the cells of one worksheet that fall inside a CellRange

    Row and column bounds are 0-based and inclusive. A row end of 0 extends
    the range to the last populated row of the sheet; a column end of 0
    extends it to the last column populated by a record that is not
    skipped. Skipping is applied inside the range. Rows with no populated
    cell are not records and are passed over.
    """

    def __init__(
        self,
        workbook: Workbook,
        sheet: Optional[str] = None,
        cell_range: Optional[CellRange] = None,
        skip: int = 0,
        source_name: str = "<workbook>"
    ):
        super().__init__(source_name, skip)
        self._workbook = workbook
        self.cell_range = cell_range or CellRange()

        if sheet:
            if sheet not in workbook.sheetnames:
                raise ConfigurationError(
                    f"sheet '{sheet}' not found, workbook has {workbook.sheetnames}",
                    context={'source': source_name}
                )
            self._sheet = workbook[sheet]
        else:
            self._sheet = workbook.worksheets[0]

    @property
    def sheet_title(self) -> str:
        return self._sheet.title

    def _iter_physical_rows(self) -> Iterator[RawRow]:
        bounds = self.cell_range
        min_row = bounds.row_start + 1
        min_col = bounds.col_start + 1
        max_row = bounds.row_end + 1 if bounds.is_row_bounded else self._sheet.max_row
        max_col = bounds.col_end + 1 if bounds.is_col_bounded else self._sheet.max_column

        if min_row > max_row or min_col > max_col:
            return

        records = self._populated_rows(min_row, max_row, min_col, max_col)
        if bounds.is_col_bounded:
            yield from records
            return

        # an open column range ends at the last column used past the skipped rows
        records = list(records)
        width = 0
        for cells in records[self.skip:]:
            width = max(width, max(i for i, cell in enumerate(cells) if cell) + 1)
        for cells in records:
            yield cells[:width]

    def _populated_rows(self, min_row: int, max_row: int, min_col: int, max_col: int) -> Iterator[RawRow]:
        for values in self._sheet.iter_rows(
            min_row=min_row,
            max_row=max_row,
            min_col=min_col,
            max_col=max_col,
            values_only=True
        ):
            cells = [render_cell(value) for value in values]
            if any(cells):
                yield cells

    def _release(self) -> None:
        self._workbook.close()
