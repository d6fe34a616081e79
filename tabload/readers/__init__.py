"""Row readers"""

from .base import RowReader, RawRow
from .delimited_reader import DelimitedRowReader
from .spreadsheet_reader import SpreadsheetRowReader, render_cell

__all__ = ['RowReader', 'RawRow', 'DelimitedRowReader', 'SpreadsheetRowReader', 'render_cell']
