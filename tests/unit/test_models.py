# tests/unit/test_models.py
"""Tests for source and schema models."""

from datetime import date

import pytest

from tabload.models.source_spec import CellRange, SourceFormat, SourceSpec
from tabload.models.table_schema import (
    INT64_SENTINEL,
    ColumnDefinition,
    SemanticType,
    TableSchema,
)


class TestSourceFormat:
    """Test format tokens."""

    @pytest.mark.parametrize("token,expected", [
        ("text", SourceFormat.TEXT),
        ("CSV", SourceFormat.CSV),
        ("Xlsx", SourceFormat.XLSX),
        ("xls", SourceFormat.XLS),
    ])
    def test_from_token(self, token, expected):
        assert SourceFormat.from_token(token) is expected

    def test_unknown_token(self):
        with pytest.raises(ValueError):
            SourceFormat.from_token("json")

    def test_spreadsheet_flag(self):
        assert SourceFormat.XLS.is_spreadsheet
        assert not SourceFormat.CSV.is_spreadsheet


class TestCellRange:
    """Test CellRange parsing and bounds."""

    def test_from_spans(self):
        assert CellRange.from_spans("4:0", "2:7") == CellRange(4, 0, 2, 7)

    def test_unbounded_flags(self):
        cell_range = CellRange(4, 0, 2, 7)
        assert not cell_range.is_row_bounded
        assert cell_range.is_col_bounded

    @pytest.mark.parametrize("span", ["4", "a:b", "1:2:3", ""])
    def test_parse_span_rejects(self, span):
        with pytest.raises(ValueError):
            CellRange.parse_span(span)

    def test_negative_bound(self):
        with pytest.raises(ValueError):
            CellRange(-1, 0, 0, 0)


class TestSourceSpec:
    """Test SourceSpec properties."""

    @pytest.mark.parametrize("identifier,remote", [
        ("https://example.org/a.csv", True),
        ("HTTP://example.org/a.csv", True),
        ("/data/a.csv", False),
        ("ftp://example.org/a.csv", False),
    ])
    def test_is_remote(self, identifier, remote):
        assert SourceSpec(identifier, SourceFormat.CSV).is_remote is remote


class TestTableSchema:
    """Test TableSchema validation."""

    def test_sentinels(self):
        assert SemanticType.INT64.sentinel == INT64_SENTINEL == 9223372036854775807
        assert SemanticType.DATE.sentinel == date(1970, 1, 1)
        assert SemanticType.STRING.sentinel == "!"
        assert SemanticType.FLOAT64.sentinel == 1.7976931348623157e308

    def test_snowflake_types(self):
        assert SemanticType.INT64.snowflake_type == "NUMBER(19,0)"
        assert SemanticType.STRING.snowflake_type == "VARCHAR"

    def test_unknown_has_no_sentinel(self):
        with pytest.raises(ValueError):
            SemanticType.UNKNOWN.sentinel

    def test_valid_schema(self):
        schema = TableSchema(
            columns=(ColumnDefinition("a", SemanticType.INT64), ColumnDefinition("b", SemanticType.STRING)),
            key="a"
        )
        assert schema.width == 2
        assert schema.names == ["a", "b"]

    def test_rejects_duplicates(self):
        with pytest.raises(ValueError):
            TableSchema(
                columns=(ColumnDefinition("a", SemanticType.INT64), ColumnDefinition("a", SemanticType.STRING)),
                key="a"
            )

    def test_rejects_unknown_type(self):
        with pytest.raises(ValueError):
            TableSchema(columns=(ColumnDefinition("a", SemanticType.UNKNOWN),), key="a")

    def test_rejects_missing_key(self):
        with pytest.raises(ValueError):
            TableSchema(columns=(ColumnDefinition("a", SemanticType.INT64),), key="b")
