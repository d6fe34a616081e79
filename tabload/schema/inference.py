"""
Column type inference

Scans every data row once and picks, per column, the most specific type
that at least ``threshold`` of the non-empty cells parse as. Candidates are
tried in the order Date, Int64, Float64; String is the fallback. A column
with no non-empty cells is String.
"""

from typing import Dict, Iterable, List, Optional, Sequence

from tabload.models.table_schema import ColumnOrigin, SemanticType
from tabload.schema.builder import TableSchemaBuilder
from tabload.schema.parsers import DateParser, parse_float64, parse_int64
from tabload.utils.exceptions import SchemaMismatchError
from tabload.utils.logger import get_logger, timed_operation

CANDIDATE_ORDER = (SemanticType.DATE, SemanticType.INT64, SemanticType.FLOAT64)


class TypeInferenceEngine:
    """Counts per-column parse successes and resolves a type per column"""

    def __init__(self, threshold: float = 0.95, date_format: Optional[str] = None):
        if not 0.0 < threshold <= 1.0:
            raise ValueError("threshold must be in (0, 1]")
        self.threshold = threshold
        self.date_format = date_format
        self.logger = get_logger(__name__)

    def infer(self, rows: Iterable[Sequence[str]], width: int) -> List[SemanticType]:
        """
        Infer one type per column from raw rows

        Args:
            rows: Data rows (header already consumed)
            width: Expected number of columns

        Returns:
            One SemanticType per column

        Raises:
            SchemaMismatchError: If a row's width differs from ``width``
        """
        non_empty = [0] * width
        hits: Dict[SemanticType, List[int]] = {t: [0] * width for t in CANDIDATE_ORDER}
        date_parsers = [DateParser(self.date_format) for _ in range(width)]
        row_count = 0

        with timed_operation("type_inference", self.logger):
            for row in rows:
                row_count += 1
                if len(row) != width:
                    raise SchemaMismatchError(
                        f"data has {len(row)} columns, schema has {width}",
                        context={'row': row_count}
                    )
                for index, cell in enumerate(row):
                    if not cell.strip():
                        continue
                    non_empty[index] += 1
                    if date_parsers[index](cell) is not None:
                        hits[SemanticType.DATE][index] += 1
                    if parse_int64(cell) is not None:
                        hits[SemanticType.INT64][index] += 1
                    if parse_float64(cell) is not None:
                        hits[SemanticType.FLOAT64][index] += 1

        types = [self._resolve(index, non_empty, hits) for index in range(width)]
        self.logger.info(
            f"Inferred types from {row_count} rows: {[t.value for t in types]}"
        )
        return types

    def _resolve(self, index: int, non_empty: List[int], hits: Dict[SemanticType, List[int]]) -> SemanticType:
        total = non_empty[index]
        if total == 0:
            return SemanticType.STRING
        for candidate in CANDIDATE_ORDER:
            if hits[candidate][index] / total >= self.threshold:
                return candidate
        return SemanticType.STRING


def impute_types(
    rows: Iterable[Sequence[str]],
    builder: TableSchemaBuilder,
    threshold: float = 0.95,
    date_format: Optional[str] = None
) -> List[SemanticType]:
    """Infer types for every column of ``builder`` from ``rows`` and store them on it"""
    types = TypeInferenceEngine(threshold, date_format).infer(rows, builder.width)
    builder.set_types(types, ColumnOrigin.INFERRED)
    return types
