# tests/unit/test_settings.py
"""Tests for environment configuration."""

import os
from pathlib import Path
from unittest.mock import patch

from tabload.config.settings import HttpConfig, PipelineConfig, Settings, SnowflakeConfig


class TestSnowflakeConfig:
    """Test SnowflakeConfig loading."""

    def test_from_env_reads_all_fields(self):
        env_vars = {
            'SNOWFLAKE_ACCOUNT': 'acct',
            'SNOWFLAKE_USERNAME': 'loader',
            'SNOWFLAKE_PASSWORD': 'secret',
            'SNOWFLAKE_WAREHOUSE': 'LOAD_WH',
            'SNOWFLAKE_DATABASE': 'RAW',
            'SNOWFLAKE_SCHEMA': 'LANDING',
            'SNOWFLAKE_ROLE': 'LOADER'
        }
        with patch.dict(os.environ, env_vars, clear=True):
            config = SnowflakeConfig.from_env()

        assert config.account == 'acct'
        assert config.username == 'loader'
        assert config.password == 'secret'
        assert config.warehouse == 'LOAD_WH'
        assert config.database == 'RAW'
        assert config.schema == 'LANDING'
        assert config.role == 'LOADER'

    def test_from_env_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = SnowflakeConfig.from_env()

        assert config.account == ''
        assert config.warehouse == 'COMPUTE_WH'
        assert config.database == 'TABLOAD_DB'
        assert config.schema == 'PUBLIC'
        assert config.role is None


class TestHttpConfig:
    """Test HttpConfig loading."""

    def test_defaults(self):
        config = HttpConfig()
        assert config.timeout_seconds == 300
        assert config.chunk_size == 8192

    def test_from_env(self):
        with patch.dict(os.environ, {'HTTP_TIMEOUT_SECONDS': '12', 'HTTP_USER_AGENT': 'tabload-test/2'}, clear=True):
            config = HttpConfig.from_env()

        assert config.timeout_seconds == 12
        assert config.user_agent == 'tabload-test/2'


class TestPipelineConfig:
    """Test PipelineConfig dataclass functionality."""

    def test_creation_with_string_path(self, tmp_path):
        config = PipelineConfig(
            work_dir=str(tmp_path),
            batch_size=50,
            impute_threshold=0.9,
            pipelined_export=False,
            cleanup_temp_files=False,
            log_level="DEBUG"
        )

        assert isinstance(config.work_dir, Path)
        assert config.batch_size == 50
        assert config.impute_threshold == 0.9
        assert config.pipelined_export is False
        assert config.cleanup_temp_files is False
        assert config.log_level == "DEBUG"

    def test_defaults(self, tmp_path):
        config = PipelineConfig(work_dir=tmp_path)

        assert config.batch_size == 1000
        assert config.impute_threshold == 0.95
        assert config.pipelined_export is True
        assert config.cleanup_temp_files is True
        assert config.log_level == "INFO"

    def test_creates_work_directory(self, tmp_path):
        new_dir = tmp_path / "nested" / "work"
        assert not new_dir.exists()

        config = PipelineConfig(work_dir=new_dir)

        assert config.work_dir.is_dir()


class TestSettings:
    """Test the Settings aggregate."""

    def test_pipeline_config_from_environment(self, tmp_path):
        env_vars = {
            'WORK_DIR': str(tmp_path / 'w'),
            'BATCH_SIZE': '250',
            'IMPUTE_THRESHOLD': '0.8',
            'PIPELINED_EXPORT': 'false',
            'CLEANUP_TEMP_FILES': 'false',
            'LOG_LEVEL': 'DEBUG'
        }
        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings()

        assert settings.pipeline.work_dir == tmp_path / 'w'
        assert settings.pipeline.batch_size == 250
        assert settings.pipeline.impute_threshold == 0.8
        assert settings.pipeline.pipelined_export is False
        assert settings.pipeline.cleanup_temp_files is False
        assert settings.pipeline.log_level == 'DEBUG'

    def test_validate_success(self, tmp_path):
        env_vars = {
            'WORK_DIR': str(tmp_path),
            'SNOWFLAKE_ACCOUNT': 'acct',
            'SNOWFLAKE_USERNAME': 'user',
            'SNOWFLAKE_PASSWORD': 'pw'
        }
        with patch.dict(os.environ, env_vars, clear=True):
            assert Settings().validate() is True

    def test_validate_missing_credentials(self, tmp_path):
        with patch.dict(os.environ, {'WORK_DIR': str(tmp_path)}, clear=True):
            assert Settings().validate() is False

    def test_validate_rejects_bad_threshold(self, tmp_path):
        env_vars = {
            'WORK_DIR': str(tmp_path),
            'SNOWFLAKE_ACCOUNT': 'acct',
            'SNOWFLAKE_USERNAME': 'user',
            'SNOWFLAKE_PASSWORD': 'pw',
            'IMPUTE_THRESHOLD': '1.5'
        }
        with patch.dict(os.environ, env_vars, clear=True):
            assert Settings().validate() is False
