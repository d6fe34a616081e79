"""
Raw row to typed row conversion

Empty cells and cells that fail to parse become the column type's
sentinel, so coercion never fails on content; only a width mismatch is an
error.
"""

from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from tabload.models.table_schema import SemanticType, TableSchema
from tabload.schema.parsers import DateParser, parse_float64, parse_int64
from tabload.utils.exceptions import SchemaMismatchError

TypedRow = Tuple[Any, ...]


def _string_value(cell: str) -> Optional[str]:
    return cell


class RowCoercer:
    """Holds one parser per column of a schema"""

    def __init__(self, schema: TableSchema, date_format: Optional[str] = None):
        self.schema = schema
        self._converters: List[Tuple[Callable[[str], Any], Any]] = [
            (self._parser_for(column.semantic_type, date_format), column.sentinel)
            for column in schema.columns
        ]

    @staticmethod
    def _parser_for(semantic_type: SemanticType, date_format: Optional[str]) -> Callable[[str], Any]:
        if semantic_type is SemanticType.INT64:
            return parse_int64
        if semantic_type is SemanticType.FLOAT64:
            return parse_float64
        if semantic_type is SemanticType.DATE:
            return DateParser(date_format)
        return _string_value

    def coerce(self, raw: Sequence[str]) -> TypedRow:
        """
        Convert one raw row

        Raises:
            SchemaMismatchError: If the row width differs from the schema width
        """
        if len(raw) != self.schema.width:
            raise SchemaMismatchError(
                f"row has {len(raw)} fields, schema has {self.schema.width}",
                context={'columns': self.schema.names}
            )
        values = []
        for cell, (parse, sentinel) in zip(raw, self._converters):
            if not cell.strip():
                values.append(sentinel)
                continue
            value = parse(cell)
            values.append(sentinel if value is None else value)
        return tuple(values)

    def coerce_rows(self, rows: Iterable[Sequence[str]]) -> Iterator[TypedRow]:
        for raw in rows:
            yield self.coerce(raw)


def coerce(raw: Sequence[str], schema: TableSchema, date_format: Optional[str] = None) -> TypedRow:
    """Convert a single raw row; build a RowCoercer for repeated use"""
    return RowCoercer(schema, date_format).coerce(raw)
