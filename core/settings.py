"""
Centralized application settings using Pydantic.

All environment variables are read once at startup and validated.
Use this instead of scattered os.getenv() calls throughout the codebase.
"""

from typing import Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings

from pipeline.core import config


class S3Settings(BaseSettings):
    """S3/MinIO storage configuration."""

    S3_ENDPOINT: str = ""
    S3_ACCESS_KEY: str = ""
    S3_SECRET_KEY: SecretStr = SecretStr("")
    S3_BUCKET: str = "print-queue"
    S3_SECURE: bool = True
    S3_REGION: Optional[str] = None
    S3_VERIFY_TLS: bool = True
    S3_TIMEOUT_SECONDS: float = config.S3_TIMEOUT_SECONDS

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}


class FtpSettings(BaseSettings):
    """FTP delivery configuration. Hosts and credentials come per request."""

    FTP_TIMEOUT_SECONDS: float = config.FTP_TIMEOUT_SECONDS
    FTP_PASSIVE: bool = True

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}


class AppSettings(BaseSettings):
    """General application settings."""

    MERGE_API_SECRET: SecretStr = SecretStr("")
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    SERVICE_NAME: str = "pdf-merge"
    SERVICE_VERSION: str = "2.1.0"
    MAX_BATCHES: int = config.MAX_BATCHES

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}


# Singleton instances - loaded once at module import
s3_settings = S3Settings()
ftp_settings = FtpSettings()
app_settings = AppSettings()
