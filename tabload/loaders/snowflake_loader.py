# tabload/loaders/snowflake_loader.py
"""
Snowflake destination: connections, table creation and batch appends
"""

from contextlib import contextmanager
from typing import Optional, Sequence

import pandas as pd
import snowflake.connector
from snowflake.connector.pandas_tools import write_pandas

from tabload.config.settings import SnowflakeConfig
from tabload.loaders.batch_exporter import BatchWriter, Row
from tabload.models.table_schema import TableSchema
from tabload.utils.logger import get_logger
from tabload.utils.exceptions import (
    DestinationConnectionError,
    RowRejectedError,
    TableCreationError,
)

# Errors that mean the session is gone rather than that the data was refused
_CONNECTION_ERRORS = (
    snowflake.connector.errors.OperationalError,
    snowflake.connector.errors.InterfaceError,
)


def quote_identifier(name: str) -> str:
    """Double-quote an identifier, keeping its case"""
    return '"' + name.replace('"', '""') + '"'


class SnowflakeLoader:
    """
    Handles connection and DDL operations against Snowflake

    One connection is opened per run with get_connection() and shared by
    create_table() and the SnowflakeTableWriter that exports the rows.
    """

    def __init__(self, config: SnowflakeConfig):
        """
        Initialize Snowflake loader

        Args:
            config: Snowflake configuration object
        """
        self.config = config
        self.logger = get_logger(__name__)

    @contextmanager
    def get_connection(self):
        """
        Context manager for Snowflake database connections

        Raises:
            DestinationConnectionError: If the connection cannot be opened
        """
        try:
            connection = snowflake.connector.connect(
                account=self.config.account,
                user=self.config.username,
                password=self.config.password,
                warehouse=self.config.warehouse,
                database=self.config.database,
                schema=self.config.schema,
                role=self.config.role
            )
        except snowflake.connector.errors.Error as e:
            self.logger.error(f"Failed to connect to Snowflake: {str(e)}")
            raise DestinationConnectionError(
                f"Snowflake connection failed: {str(e)}",
                context={'account': self.config.account, 'database': self.config.database},
                cause=e
            ) from e

        self.logger.info("Connected to Snowflake successfully")
        try:
            yield connection
        finally:
            connection.close()
            self.logger.info("Snowflake connection closed")

    def build_create_table_sql(self, table_name: str, schema: TableSchema) -> str:
        """
        Render the CREATE TABLE statement for a schema

        Column names are quoted so header case survives; the table is
        clustered on the key column.
        """
        column_definitions = ",\n    ".join(
            f"{quote_identifier(column.name)} {column.semantic_type.snowflake_type}"
            for column in schema.columns
        )
        return (
            f"CREATE TABLE {table_name} (\n"
            f"    {column_definitions}\n"
            f") CLUSTER BY ({quote_identifier(schema.key)})"
        )

    def create_table(self, connection, table_name: str, schema: TableSchema) -> None:
        """
        Create the destination table

        Raises:
            DestinationConnectionError: If the connection is unusable
            TableCreationError: If Snowflake rejects the definition
        """
        create_table_sql = self.build_create_table_sql(table_name, schema)
        self.logger.debug(f"Executing: {create_table_sql}")

        cursor = connection.cursor()
        try:
            cursor.execute(create_table_sql)
        except _CONNECTION_ERRORS as e:
            raise DestinationConnectionError(
                f"connection lost creating {table_name}: {str(e)}",
                context={'table': table_name},
                cause=e
            ) from e
        except snowflake.connector.errors.Error as e:
            raise TableCreationError(
                f"Failed to create table {table_name}: {str(e)}",
                context={'table': table_name},
                cause=e
            ) from e
        finally:
            cursor.close()

        self.logger.info(f"Created table {table_name} with {schema.width} columns")

    def writer(self, connection, table_name: str, schema: TableSchema) -> 'SnowflakeTableWriter':
        return SnowflakeTableWriter(connection, table_name, schema)


class SnowflakeTableWriter(BatchWriter):
    """
    Appends batches of coerced rows to one table

    Batches go through ``write_pandas``. If Snowflake refuses a batch, the
    rows are inserted one at a time so the refused row can be reported to
    the exporter by position.
    """

    def __init__(self, connection, table_name: str, schema: TableSchema):
        self.connection = connection
        self.table_name = table_name
        self.schema = schema
        self.logger = get_logger(__name__)
        column_list = ", ".join(quote_identifier(name) for name in schema.names)
        placeholders = ", ".join(["%s"] * schema.width)
        self._insert_sql = f"INSERT INTO {table_name} ({column_list}) VALUES ({placeholders})"

    def write_batch(self, rows: Sequence[Row]) -> None:
        if not rows:
            return

        frame = pd.DataFrame(list(rows), columns=self.schema.names)
        try:
            success, nchunks, nrows, _ = write_pandas(
                conn=self.connection,
                df=frame,
                table_name=self.table_name.upper(),
                quote_identifiers=True
            )
        except _CONNECTION_ERRORS as e:
            raise DestinationConnectionError(
                f"connection lost writing to {self.table_name}: {str(e)}",
                context={'table': self.table_name},
                cause=e
            ) from e
        except snowflake.connector.errors.Error as e:
            self.logger.warning(f"Bulk append rejected, retrying {len(rows)} rows individually: {str(e)}")
            self._insert_rows(rows)
            return

        if not success or nrows != len(rows):
            self.logger.warning(
                f"Bulk append loaded {nrows} of {len(rows)} rows, retrying individually"
            )
            self._insert_rows(rows)
            return

        self.logger.debug(f"Appended {nrows} rows to {self.table_name} in {nchunks} chunks")

    def _insert_rows(self, rows: Sequence[Row]) -> None:
        cursor = self.connection.cursor()
        try:
            for index, row in enumerate(rows):
                try:
                    cursor.execute(self._insert_sql, tuple(row))
                except _CONNECTION_ERRORS as e:
                    raise DestinationConnectionError(
                        f"connection lost writing to {self.table_name}: {str(e)}",
                        context={'table': self.table_name},
                        cause=e
                    ) from e
                except snowflake.connector.errors.Error as e:
                    raise RowRejectedError(
                        f"{self.table_name} rejected row: {str(e)}",
                        row_index=index,
                        context={'table': self.table_name},
                        cause=e
                    ) from e
        finally:
            cursor.close()
