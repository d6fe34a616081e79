"""
Delimited text reader (tab separated text and CSV)
"""

import csv
import io
from typing import BinaryIO, Iterator

from tabload.readers.base import RawRow, RowReader

# Government and survey extracts often carry very long free-text fields
csv.field_size_limit(2**31 - 1)


class DelimitedRowReader(RowReader):
    """
    Reads rows split on a single-character separator

    The quote character suppresses separator and line-break handling inside
    quoted spans (a doubled quote is a literal quote). An empty quote
    disables quoting. Carriage returns are dropped everywhere, so CRLF
    files and stray ctrl-R bytes read the same as plain LF files.
    """

    def __init__(
        self,
        stream: BinaryIO,
        separator: str,
        quote: str = '"',
        skip: int = 0,
        source_name: str = "<stream>",
        encoding: str = "utf-8-sig"
    ):
        super().__init__(source_name, skip)
        if len(separator) != 1:
            raise ValueError("separator must be a single character")
        self.separator = separator
        self.quote = quote
        self._text = io.TextIOWrapper(stream, encoding=encoding, errors="replace", newline="\n")

    def _lines(self) -> Iterator[str]:
        for line in self._text:
            yield line.replace("\r", "")

    def _iter_physical_rows(self) -> Iterator[RawRow]:
        if self.quote:
            reader = csv.reader(self._lines(), delimiter=self.separator, quotechar=self.quote)
        else:
            reader = csv.reader(self._lines(), delimiter=self.separator, quoting=csv.QUOTE_NONE)
        for row in reader:
            # blank line
            if not row:
                continue
            yield row

    def _release(self) -> None:
        self._text.close()
