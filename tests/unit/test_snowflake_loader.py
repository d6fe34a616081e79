# tests/unit/test_snowflake_loader.py
"""
Unit tests for SnowflakeLoader and SnowflakeTableWriter
"""

from datetime import date
from unittest.mock import Mock, patch

import pytest
import snowflake.connector.errors

from tabload.loaders.snowflake_loader import SnowflakeLoader, SnowflakeTableWriter, quote_identifier
from tabload.models.table_schema import SemanticType
from tabload.schema.builder import build_table_schema
from tabload.utils.exceptions import (
    DestinationConnectionError,
    RowRejectedError,
    TableCreationError,
)


@pytest.fixture
def loader(snowflake_config):
    """Create SnowflakeLoader instance"""
    return SnowflakeLoader(snowflake_config)


@pytest.fixture
def schema():
    return build_table_schema(
        ["seriesId", "value", "day"],
        [SemanticType.STRING, SemanticType.FLOAT64, SemanticType.DATE]
    )


class TestSnowflakeLoaderConnection:
    """Test Snowflake connection management"""

    @patch('tabload.loaders.snowflake_loader.snowflake.connector.connect')
    def test_get_connection_success(self, mock_connect, loader):
        mock_connection = Mock()
        mock_connect.return_value = mock_connection

        with loader.get_connection() as conn:
            assert conn == mock_connection

        mock_connect.assert_called_once_with(
            account=loader.config.account,
            user=loader.config.username,
            password=loader.config.password,
            warehouse=loader.config.warehouse,
            database=loader.config.database,
            schema=loader.config.schema,
            role=loader.config.role
        )
        mock_connection.close.assert_called_once()

    @patch('tabload.loaders.snowflake_loader.snowflake.connector.connect')
    def test_get_connection_failure(self, mock_connect, loader):
        mock_connect.side_effect = snowflake.connector.errors.DatabaseError("Connection failed")

        with pytest.raises(DestinationConnectionError) as exc_info:
            with loader.get_connection():
                pass

        assert "Snowflake connection failed" in str(exc_info.value)

    @patch('tabload.loaders.snowflake_loader.snowflake.connector.connect')
    def test_connection_closed_after_error_in_body(self, mock_connect, loader):
        mock_connection = Mock()
        mock_connect.return_value = mock_connection

        with pytest.raises(RuntimeError):
            with loader.get_connection():
                raise RuntimeError("boom")

        mock_connection.close.assert_called_once()


class TestCreateTable:
    """Test table DDL"""

    def test_create_table_sql(self, loader, schema):
        sql = loader.build_create_table_sql("series", schema)

        assert sql.startswith("CREATE TABLE series (")
        assert '"seriesId" VARCHAR' in sql
        assert '"value" FLOAT' in sql
        assert '"day" DATE' in sql
        assert sql.endswith('CLUSTER BY ("seriesId")')

    def test_int_columns_are_number(self, loader):
        schema = build_table_schema(["n"], [SemanticType.INT64])
        assert '"n" NUMBER(19,0)' in loader.build_create_table_sql("t", schema)

    def test_quote_identifier_escapes_quotes(self):
        assert quote_identifier('a"b') == '"a""b"'

    def test_create_table_executes(self, loader, schema, mock_snowflake_connection):
        loader.create_table(mock_snowflake_connection, "series", schema)

        cursor = mock_snowflake_connection.cursor.return_value
        cursor.execute.assert_called_once_with(loader.build_create_table_sql("series", schema))
        cursor.close.assert_called_once()

    def test_create_table_rejected(self, loader, schema, mock_snowflake_connection):
        cursor = mock_snowflake_connection.cursor.return_value
        cursor.execute.side_effect = snowflake.connector.errors.ProgrammingError("already exists")

        with pytest.raises(TableCreationError) as exc_info:
            loader.create_table(mock_snowflake_connection, "series", schema)

        assert exc_info.value.context['table'] == "series"
        cursor.close.assert_called_once()

    def test_create_table_connection_lost(self, loader, schema, mock_snowflake_connection):
        cursor = mock_snowflake_connection.cursor.return_value
        cursor.execute.side_effect = snowflake.connector.errors.OperationalError("gone")

        with pytest.raises(DestinationConnectionError):
            loader.create_table(mock_snowflake_connection, "series", schema)


class TestSnowflakeTableWriter:
    """Test batch appends"""

    @pytest.fixture
    def batch(self):
        return [
            ("a", 1.5, date(2023, 1, 1)),
            ("b", 2.5, date(2023, 1, 2)),
            ("c", 3.5, date(2023, 1, 3)),
        ]

    @patch('tabload.loaders.snowflake_loader.write_pandas')
    def test_write_batch_uses_write_pandas(self, mock_write, mock_snowflake_connection, schema, batch):
        mock_write.return_value = (True, 1, 3, [])
        writer = SnowflakeTableWriter(mock_snowflake_connection, "series", schema)

        writer.write_batch(batch)

        kwargs = mock_write.call_args.kwargs
        assert kwargs['conn'] is mock_snowflake_connection
        assert kwargs['table_name'] == "SERIES"
        assert kwargs['quote_identifiers'] is True
        assert list(kwargs['df'].columns) == ["seriesId", "value", "day"]
        assert len(kwargs['df']) == 3
        mock_snowflake_connection.cursor.assert_not_called()

    @patch('tabload.loaders.snowflake_loader.write_pandas')
    def test_empty_batch_is_noop(self, mock_write, mock_snowflake_connection, schema):
        SnowflakeTableWriter(mock_snowflake_connection, "series", schema).write_batch([])
        mock_write.assert_not_called()

    @patch('tabload.loaders.snowflake_loader.write_pandas')
    def test_rejected_bulk_falls_back_to_row_inserts(self, mock_write, mock_snowflake_connection, schema, batch):
        mock_write.side_effect = snowflake.connector.errors.ProgrammingError("bad value")
        cursor = mock_snowflake_connection.cursor.return_value
        cursor.execute.side_effect = [None, snowflake.connector.errors.ProgrammingError("bad value")]
        writer = SnowflakeTableWriter(mock_snowflake_connection, "series", schema)

        with pytest.raises(RowRejectedError) as exc_info:
            writer.write_batch(batch)

        assert exc_info.value.row_index == 1
        assert cursor.execute.call_count == 2
        sql, params = cursor.execute.call_args_list[0].args
        assert sql == 'INSERT INTO series ("seriesId", "value", "day") VALUES (%s, %s, %s)'
        assert params == batch[0]
        cursor.close.assert_called_once()

    @patch('tabload.loaders.snowflake_loader.write_pandas')
    def test_fallback_succeeds_when_all_rows_accepted(self, mock_write, mock_snowflake_connection, schema, batch):
        mock_write.return_value = (False, 1, 0, [])
        writer = SnowflakeTableWriter(mock_snowflake_connection, "series", schema)

        writer.write_batch(batch)

        assert mock_snowflake_connection.cursor.return_value.execute.call_count == 3

    @patch('tabload.loaders.snowflake_loader.write_pandas')
    def test_connection_loss_during_bulk(self, mock_write, mock_snowflake_connection, schema, batch):
        mock_write.side_effect = snowflake.connector.errors.OperationalError("session expired")
        writer = SnowflakeTableWriter(mock_snowflake_connection, "series", schema)

        with pytest.raises(DestinationConnectionError):
            writer.write_batch(batch)
