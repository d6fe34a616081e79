# tests/unit/conftest.py
"""
Shared pytest fixtures and destination doubles
"""

from contextlib import contextmanager
from typing import Callable, List, Optional
from unittest.mock import Mock

import pytest
from openpyxl import Workbook

from tabload.config.settings import PipelineConfig, SnowflakeConfig
from tabload.loaders.batch_exporter import BatchWriter
from tabload.utils.exceptions import DestinationConnectionError, RowRejectedError


class RecordingWriter(BatchWriter):
    """
    In-memory BatchWriter

    ``reject`` decides per row whether the destination refuses it;
    ``fail_on_call`` makes the n-th write_batch call (1-based) lose the
    connection.
    """

    def __init__(
        self,
        reject: Optional[Callable[[tuple], bool]] = None,
        fail_on_call: Optional[int] = None
    ):
        self.reject = reject
        self.fail_on_call = fail_on_call
        self.calls: List[List[tuple]] = []
        self.written: List[tuple] = []

    def write_batch(self, rows):
        self.calls.append(list(rows))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise DestinationConnectionError("connection reset")
        for index, row in enumerate(rows):
            if self.reject is not None and self.reject(row):
                raise RowRejectedError(f"bad row {row}", row_index=index)
            self.written.append(tuple(row))


class FakeLoader:
    """Stands in for SnowflakeLoader, collecting what would be sent"""

    def __init__(self, writer: Optional[RecordingWriter] = None):
        self.connection = Mock()
        self.table_writer = writer or RecordingWriter()
        self.created = []

    @contextmanager
    def get_connection(self):
        yield self.connection

    def create_table(self, connection, table_name, schema):
        self.created.append((table_name, schema))

    def writer(self, connection, table_name, schema):
        return self.table_writer


@pytest.fixture
def snowflake_config():
    """Create a test Snowflake configuration"""
    return SnowflakeConfig(
        account="test_account",
        username="test_user",
        password="test_password",
        warehouse="test_warehouse",
        database="test_database",
        schema="test_schema",
        role="test_role"
    )


@pytest.fixture
def mock_snowflake_connection():
    """Create a mock Snowflake connection"""
    connection = Mock()
    cursor = Mock()
    connection.cursor.return_value = cursor

    cursor.execute.return_value = None
    cursor.close.return_value = None
    connection.close.return_value = None

    return connection


@pytest.fixture
def pipeline_config(tmp_path):
    """Pipeline configuration rooted in a temporary work directory"""
    return PipelineConfig(
        work_dir=tmp_path / "work",
        batch_size=2,
        pipelined_export=False,
        cleanup_temp_files=True
    )


@pytest.fixture
def write_text(tmp_path):
    """Write a text source and return its path"""
    def _write(name: str, content: str) -> str:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def write_workbook(tmp_path):
    """Write an XLSX workbook from {sheet title: rows} and return its path"""
    def _write(name: str, sheets: dict) -> str:
        workbook = Workbook()
        workbook.remove(workbook.active)
        for title, rows in sheets.items():
            sheet = workbook.create_sheet(title)
            for row in rows:
                sheet.append(list(row))
        path = tmp_path / name
        workbook.save(path)
        return str(path)
    return _write


@pytest.fixture
def make_writer():
    """Factory for RecordingWriter doubles"""
    return RecordingWriter


@pytest.fixture
def make_loader():
    """Factory for FakeLoader doubles"""
    return FakeLoader
