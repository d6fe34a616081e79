"""Destination loaders and the export engine"""

from .batch_exporter import BatchExporter, BatchWriter, ExportResult
from .snowflake_loader import SnowflakeLoader, SnowflakeTableWriter, quote_identifier

__all__ = [
    'BatchExporter', 'BatchWriter', 'ExportResult',
    'SnowflakeLoader', 'SnowflakeTableWriter', 'quote_identifier',
]
