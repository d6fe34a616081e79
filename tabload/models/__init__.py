"""Data models"""

from .source_spec import SourceFormat, CellRange, SourceSpec
from .table_schema import (
    SemanticType, ColumnOrigin, ColumnDefinition, TableSchema, TYPE_TOKENS,
    FLOAT64_SENTINEL, INT64_SENTINEL, DATE_SENTINEL, STRING_SENTINEL
)

__all__ = [
    'SourceFormat', 'CellRange', 'SourceSpec',
    'SemanticType', 'ColumnOrigin', 'ColumnDefinition', 'TableSchema', 'TYPE_TOKENS',
    'FLOAT64_SENTINEL', 'INT64_SENTINEL', 'DATE_SENTINEL', 'STRING_SENTINEL',
]
