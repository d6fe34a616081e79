"""
Caller-supplied ingestion options and their validation

Everything here runs before any I/O against the source or the
destination, so a bad combination of options fails fast.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from tabload.models.source_spec import CellRange, SourceFormat, SourceSpec
from tabload.models.table_schema import TYPE_TOKENS
from tabload.utils.exceptions import ConfigurationError, SchemaMismatchError

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*$")
_YES_NO = {"y": True, "n": False}


@dataclass(frozen=True)
class IngestOptions:
    """Validated options for one ingestion run"""
    source: SourceSpec
    table_name: str
    headers: List[str] = field(default_factory=list)
    type_tokens: List[str] = field(default_factory=list)
    camel_case: bool = False
    lowercase_names: bool = False
    tolerate_row_errors: bool = False
    date_format: Optional[str] = None
    batch_size: int = 1000

    @property
    def headers_supplied(self) -> bool:
        return bool(self.headers)

    @property
    def types_supplied(self) -> bool:
        return bool(self.type_tokens)


def parse_yes_no(value: str, option: str) -> bool:
    """Parse a Y/N toggle case-insensitively"""
    normalized = (value or "").strip().lower()
    if normalized not in _YES_NO:
        raise ConfigurationError(f"{option} option is Y or N, got '{value}'")
    return _YES_NO[normalized]


def parse_list(value: Optional[str]) -> List[str]:
    """
    Split a comma separated option value

    Spaces and single quotes are stripped so that ``'a, b ,c'`` and
    ``a,b,c`` give the same list.
    """
    if not value:
        return []
    cleaned = value.replace(" ", "").replace("'", "")
    if not cleaned:
        return []
    return cleaned.split(",")


def parse_type_tokens(value: Optional[str]) -> List[str]:
    """Parse and check the -t type list"""
    tokens = [token.lower() for token in parse_list(value)]
    for token in tokens:
        if token not in TYPE_TOKENS:
            raise ConfigurationError(
                f"not a valid field type: '{token}'. Use one of {sorted(TYPE_TOKENS)}"
            )
    return tokens


def build_ingest_options(
    source: str,
    source_type: str,
    table: str,
    headers: Optional[str] = None,
    types: Optional[str] = None,
    camel: str = "N",
    ignore_errors: str = "N",
    quote: str = '"',
    skip: int = 0,
    sheet: Optional[str] = None,
    rows: str = "0:0",
    cols: str = "0:0",
    date_format: Optional[str] = None,
    lowercase_names: bool = False,
    batch_size: int = 1000
) -> IngestOptions:
    """
    Validate raw caller input and build IngestOptions

    Args:
        source: File path or http(s) URL
        source_type: One of text, csv, xlsx, xls (any case)
        table: Destination table name
        headers: Comma separated column names, or None to read them from the data
        types: Comma separated type tokens (s, i, d, f), or None to infer them
        camel: Y/N, convert header names to camel case
        ignore_errors: Y/N, skip rows the destination rejects
        quote: Quote character for delimited text; empty disables quoting
        skip: Rows to skip at the start of the data (within the range for spreadsheets)
        sheet: Worksheet name for spreadsheet sources
        rows: Spreadsheet row range S:E, 0-based, E=0 for unbounded
        cols: Spreadsheet column range S:E, 0-based, E=0 for unbounded
        date_format: strptime pattern for Date columns
        lowercase_names: Store header names lower-cased
        batch_size: Rows per destination batch, 0 for a single batch

    Returns:
        Validated IngestOptions

    Raises:
        ConfigurationError: If any option is invalid
        SchemaMismatchError: If headers and types have different lengths
    """
    if not source or not source.strip():
        raise ConfigurationError("a source (-s) is required")

    try:
        source_format = SourceFormat.from_token(source_type)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    if not table or not _TABLE_NAME.match(table):
        raise ConfigurationError(
            f"invalid destination table name '{table}'",
            context={'table': table}
        )

    camel_case = parse_yes_no(camel, "-c")
    tolerate = parse_yes_no(ignore_errors, "-i")

    if quote is None:
        quote = ""
    if len(quote) > 1:
        raise ConfigurationError("-q option is a single character")

    if skip < 0:
        raise ConfigurationError("-skip value must be non-negative")

    if batch_size < 0:
        raise ConfigurationError("batch size must be non-negative")

    try:
        cell_range = CellRange.from_spans(rows, cols)
    except ValueError as e:
        raise ConfigurationError(f"invalid XL rows/cols specs: {e}") from e

    header_list = parse_list(headers)
    if any(not name for name in header_list):
        raise ConfigurationError("header names must be non-empty")
    if len(set(header_list)) != len(header_list):
        raise ConfigurationError("header names must be unique")

    type_tokens = parse_type_tokens(types)
    if header_list and type_tokens and len(header_list) != len(type_tokens):
        raise SchemaMismatchError(
            f"-h headers and -t field types must have same length: "
            f"{len(header_list)} headers, {len(type_tokens)} types"
        )

    spec = SourceSpec(
        identifier=source.strip(),
        source_format=source_format,
        quote=quote,
        skip=skip,
        cell_range=cell_range,
        sheet=sheet or None
    )

    return IngestOptions(
        source=spec,
        table_name=table,
        headers=header_list,
        type_tokens=type_tokens,
        camel_case=camel_case,
        lowercase_names=lowercase_names,
        tolerate_row_errors=tolerate,
        date_format=date_format or None,
        batch_size=batch_size
    )
