# tabload/models/table_schema.py
"""
Schema model for destination tables
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Tuple

import numpy as np


# Illegal-value sentinels substituted for empty or unparseable cells
FLOAT64_SENTINEL = float(np.finfo(np.float64).max)
INT64_SENTINEL = int(np.iinfo(np.int64).max)
DATE_SENTINEL = date(1970, 1, 1)
STRING_SENTINEL = "!"


class SemanticType(Enum):
    """Column types a destination table can hold"""
    STRING = "String"
    INT64 = "Int64"
    FLOAT64 = "Float64"
    DATE = "Date"
    UNKNOWN = "Unknown"  # supplied name awaiting inference or override

    @property
    def sentinel(self) -> Any:
        """Value written when a cell is empty or cannot be parsed"""
        if self is SemanticType.UNKNOWN:
            raise ValueError("UNKNOWN columns have no sentinel")
        return _SENTINELS[self]

    @property
    def snowflake_type(self) -> str:
        """Snowflake column type used in CREATE TABLE"""
        if self is SemanticType.UNKNOWN:
            raise ValueError("UNKNOWN columns cannot be materialized")
        return _SNOWFLAKE_TYPES[self]


_SENTINELS = {
    SemanticType.STRING: STRING_SENTINEL,
    SemanticType.INT64: INT64_SENTINEL,
    SemanticType.FLOAT64: FLOAT64_SENTINEL,
    SemanticType.DATE: DATE_SENTINEL,
}

_SNOWFLAKE_TYPES = {
    SemanticType.STRING: "VARCHAR",
    SemanticType.INT64: "NUMBER(19,0)",
    SemanticType.FLOAT64: "FLOAT",
    SemanticType.DATE: "DATE",
}

# Tokens accepted by -t/--types
TYPE_TOKENS: Dict[str, SemanticType] = {
    "s": SemanticType.STRING,
    "i": SemanticType.INT64,
    "d": SemanticType.DATE,
    "f": SemanticType.FLOAT64,
}


class ColumnOrigin(Enum):
    """Where a column's name or type came from"""
    INFERRED = "inferred"
    SUPPLIED = "supplied"


@dataclass(frozen=True)
class ColumnDefinition:
    """A single destination column"""
    name: str
    semantic_type: SemanticType
    name_origin: ColumnOrigin = ColumnOrigin.INFERRED
    type_origin: ColumnOrigin = ColumnOrigin.INFERRED

    @property
    def sentinel(self) -> Any:
        return self.semantic_type.sentinel

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'type': self.semantic_type.value,
            'name_origin': self.name_origin.value,
            'type_origin': self.type_origin.value,
        }


@dataclass(frozen=True)
class TableSchema:
    """
    Immutable, ordered set of columns plus the key column

    Built once per ingestion run by TableSchemaBuilder and shared read-only
    by the coercion layer and the exporter.
    """
    columns: Tuple[ColumnDefinition, ...]
    key: str

    def __post_init__(self):
        if not self.columns:
            raise ValueError("a table needs at least one column")
        seen = set()
        for column in self.columns:
            if not column.name:
                raise ValueError("column names must be non-empty")
            if column.name in seen:
                raise ValueError(f"duplicate column name: {column.name}")
            if column.semantic_type is SemanticType.UNKNOWN:
                raise ValueError(f"column {column.name} has no resolved type")
            seen.add(column.name)
        if self.key not in seen:
            raise ValueError(f"key column {self.key} is not in the table")

    @property
    def width(self) -> int:
        return len(self.columns)

    @property
    def names(self) -> List[str]:
        return [column.name for column in self.columns]

    @property
    def types(self) -> List[SemanticType]:
        return [column.semantic_type for column in self.columns]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'key': self.key,
            'columns': [column.to_dict() for column in self.columns],
        }
