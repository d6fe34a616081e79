"""Configuration management module"""

from .settings import settings, Settings, SnowflakeConfig, HttpConfig, PipelineConfig
from .ingest_options import IngestOptions, build_ingest_options

__all__ = [
    'settings', 'Settings', 'SnowflakeConfig', 'HttpConfig', 'PipelineConfig',
    'IngestOptions', 'build_ingest_options'
]
