"""
Table schema construction

Names come from the caller or the header row; types come from the caller
or from inference. TableSchemaBuilder collects both and produces the
immutable TableSchema used for the rest of the run.
"""

from typing import List, Optional, Sequence

from tabload.models.table_schema import (
    TYPE_TOKENS,
    ColumnDefinition,
    ColumnOrigin,
    SemanticType,
    TableSchema,
)
from tabload.schema.naming import NamingPolicy
from tabload.utils.exceptions import SchemaMismatchError
from tabload.utils.logger import get_logger


class TableSchemaBuilder:
    """Mutable column list that becomes a TableSchema"""

    def __init__(self, names: Sequence[str], name_origin: ColumnOrigin):
        self.logger = get_logger(__name__)
        self._names: List[str] = list(names)
        self._name_origin = name_origin
        self._types: List[SemanticType] = [SemanticType.UNKNOWN] * len(self._names)
        self._type_origin = ColumnOrigin.INFERRED

    @classmethod
    def from_header(cls, header: Sequence[str], policy: Optional[NamingPolicy] = None) -> 'TableSchemaBuilder':
        """Name columns from a header row, applying the naming policy"""
        policy = policy or NamingPolicy()
        return cls(policy.apply_all(header), ColumnOrigin.INFERRED)

    @classmethod
    def from_supplied(cls, names: Sequence[str]) -> 'TableSchemaBuilder':
        """Name columns exactly as the caller gave them"""
        return cls(names, ColumnOrigin.SUPPLIED)

    @property
    def width(self) -> int:
        return len(self._names)

    @property
    def names(self) -> List[str]:
        return list(self._names)

    @property
    def types(self) -> List[SemanticType]:
        return list(self._types)

    @property
    def needs_types(self) -> bool:
        return any(t is SemanticType.UNKNOWN for t in self._types)

    def set_types(self, types: Sequence[SemanticType], origin: ColumnOrigin = ColumnOrigin.INFERRED) -> None:
        """
        Assign one type per column

        Raises:
            SchemaMismatchError: If the number of types differs from the width
        """
        if len(types) != self.width:
            raise SchemaMismatchError(
                f"got {len(types)} field types for {self.width} columns",
                context={'columns': self.width, 'types': len(types)}
            )
        self._types = list(types)
        self._type_origin = origin

    def apply_type_tokens(self, tokens: Sequence[str]) -> None:
        """Assign caller-supplied s/i/d/f tokens"""
        self.set_types([TYPE_TOKENS[token.lower()] for token in tokens], ColumnOrigin.SUPPLIED)

    def build(self, key: Optional[str] = None) -> TableSchema:
        """
        Freeze the columns into a TableSchema

        The key defaults to the first column.

        Raises:
            SchemaMismatchError: If names are empty or duplicated, or a type is unresolved
        """
        columns = tuple(
            ColumnDefinition(
                name=name,
                semantic_type=semantic_type,
                name_origin=self._name_origin,
                type_origin=self._type_origin,
            )
            for name, semantic_type in zip(self._names, self._types)
        )
        try:
            schema = TableSchema(columns=columns, key=key or (self._names[0] if self._names else ""))
        except ValueError as e:
            raise SchemaMismatchError(str(e), context={'columns': self._names}) from e

        self.logger.debug(f"Built schema: {schema.to_dict()}")
        return schema


def build_table_schema(
    names: Sequence[str],
    types: Sequence[SemanticType],
    names_supplied: bool = True,
    types_supplied: bool = True,
    key: Optional[str] = None
) -> TableSchema:
    """Convenience wrapper for callers that already hold names and types"""
    builder = TableSchemaBuilder(names, ColumnOrigin.SUPPLIED if names_supplied else ColumnOrigin.INFERRED)
    builder.set_types(types, ColumnOrigin.SUPPLIED if types_supplied else ColumnOrigin.INFERRED)
    return builder.build(key)
