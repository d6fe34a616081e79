"""
Configuration management for the tabload ingestion pipeline
"""

import os
import tempfile
from dataclasses import dataclass
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv


load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


@dataclass
class SnowflakeConfig:
    """Snowflake connection configuration"""
    account: str
    username: str
    password: str
    warehouse: str
    database: str
    schema: str
    role: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'SnowflakeConfig':
        """Load Snowflake config from environment variables"""
        return cls(
            account=os.getenv('SNOWFLAKE_ACCOUNT', ''),
            username=os.getenv('SNOWFLAKE_USERNAME', ''),
            password=os.getenv('SNOWFLAKE_PASSWORD', ''),
            warehouse=os.getenv('SNOWFLAKE_WAREHOUSE', 'COMPUTE_WH'),
            database=os.getenv('SNOWFLAKE_DATABASE', 'TABLOAD_DB'),
            schema=os.getenv('SNOWFLAKE_SCHEMA', 'PUBLIC'),
            role=os.getenv('SNOWFLAKE_ROLE')
        )


@dataclass
class HttpConfig:
    """HTTP retrieval configuration for remote sources"""
    timeout_seconds: int = 300
    user_agent: str = "tabload/1.0"
    chunk_size: int = 8192

    @classmethod
    def from_env(cls) -> 'HttpConfig':
        """Load HTTP config from environment variables"""
        return cls(
            timeout_seconds=int(os.getenv('HTTP_TIMEOUT_SECONDS', '300')),
            user_agent=os.getenv('HTTP_USER_AGENT', 'tabload/1.0')
        )


@dataclass
class PipelineConfig:
    """Main pipeline configuration"""
    work_dir: Path
    batch_size: int = 1000
    impute_threshold: float = 0.95
    pipelined_export: bool = True
    cleanup_temp_files: bool = True
    log_level: str = "INFO"

    def __post_init__(self):
        self.work_dir = Path(self.work_dir)
        self.work_dir.mkdir(parents=True, exist_ok=True)


class Settings:
    """
    Main settings class that aggregates all configuration
    """

    def __init__(self):
        self.snowflake = SnowflakeConfig.from_env()
        self.http = HttpConfig.from_env()
        self.pipeline = PipelineConfig(
            work_dir=os.getenv('WORK_DIR', str(Path(tempfile.gettempdir()) / 'tabload')),
            batch_size=int(os.getenv('BATCH_SIZE', '1000')),
            impute_threshold=float(os.getenv('IMPUTE_THRESHOLD', '0.95')),
            pipelined_export=_env_flag('PIPELINED_EXPORT', 'true'),
            cleanup_temp_files=_env_flag('CLEANUP_TEMP_FILES', 'true'),
            log_level=os.getenv('LOG_LEVEL', 'INFO')
        )

    def validate(self) -> bool:
        """
        Validate that all required configuration is present

        Returns:
            bool: True if configuration is valid, False otherwise
        """
        required_snowflake_fields = [
            self.snowflake.account,
            self.snowflake.username,
            self.snowflake.password
        ]

        if not all(required_snowflake_fields):
            return False

        if self.pipeline.batch_size < 0:
            return False

        if not 0.0 < self.pipeline.impute_threshold <= 1.0:
            return False

        return True


# Global settings instance
settings = Settings()
