# tests/unit/test_value_coercion.py
"""Tests for value coercion."""

from datetime import date

import pytest

from tabload.models.table_schema import (
    DATE_SENTINEL,
    FLOAT64_SENTINEL,
    INT64_SENTINEL,
    STRING_SENTINEL,
    SemanticType,
)
from tabload.schema.builder import build_table_schema
from tabload.schema.coercion import RowCoercer, coerce
from tabload.utils.exceptions import SchemaMismatchError


@pytest.fixture
def schema():
    return build_table_schema(
        ["name", "count", "ratio", "day"],
        [SemanticType.STRING, SemanticType.INT64, SemanticType.FLOAT64, SemanticType.DATE]
    )


class TestRowCoercer:
    """Test typed row production."""

    def test_valid_row(self, schema):
        assert coerce(["north", "12", "0.5", "2023-01-05"], schema) == (
            "north", 12, 0.5, date(2023, 1, 5)
        )

    def test_empty_cells_get_sentinels(self, schema):
        assert coerce(["", "", "", ""], schema) == (
            STRING_SENTINEL, INT64_SENTINEL, FLOAT64_SENTINEL, DATE_SENTINEL
        )

    def test_unparseable_cells_get_sentinels(self, schema):
        assert coerce(["x", "abc", "n/a", "soon"], schema) == (
            "x", INT64_SENTINEL, FLOAT64_SENTINEL, DATE_SENTINEL
        )

    def test_out_of_range_int(self, schema):
        row = coerce(["x", "9223372036854775808", "1", "2023-01-05"], schema)
        assert row[1] == 9223372036854775807

    def test_whitespace_around_numbers(self, schema):
        row = coerce(["x", " 7 ", " 1.25 ", "2023-01-05"], schema)
        assert row[1:3] == (7, 1.25)

    def test_string_kept_verbatim(self, schema):
        assert coerce([" padded ", "1", "1", "2023-01-05"], schema)[0] == " padded "

    def test_caller_date_format(self, schema):
        coercer = RowCoercer(schema, date_format="%d/%m/%Y")
        assert coercer.coerce(["x", "1", "1", "05/01/2023"])[3] == date(2023, 1, 5)

    def test_width_mismatch(self, schema):
        with pytest.raises(SchemaMismatchError):
            coerce(["x", "1"], schema)

    def test_coerce_rows_is_lazy(self, schema):
        coercer = RowCoercer(schema)
        rows = coercer.coerce_rows(iter([["a", "1", "2", "2023-01-01"], ["b", "", "", ""]]))
        assert next(rows) == ("a", 1, 2.0, date(2023, 1, 1))
        assert next(rows)[1] == INT64_SENTINEL

    def test_unpadded_dates_parse(self, schema):
        assert coerce(["x", "1", "1", "1/5/2023"], schema)[3] == date(2023, 1, 5)
        assert coerce(["x", "1", "1", "2023-1-5"], schema)[3] == date(2023, 1, 5)
