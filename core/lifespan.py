from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from core.settings import ftp_settings, s3_settings
from services.ftp_client import FtpClient
from services.s3_client import S3Client

logger = logging.getLogger(__name__)


def create_s3_client_from_env() -> S3Client:
    return S3Client(
        endpoint=s3_settings.S3_ENDPOINT,
        access_key=s3_settings.S3_ACCESS_KEY,
        secret_key=s3_settings.S3_SECRET_KEY.get_secret_value(),
        bucket=s3_settings.S3_BUCKET,
        secure=s3_settings.S3_SECURE,
        region=s3_settings.S3_REGION,
        verify_tls=s3_settings.S3_VERIFY_TLS,
        timeout=s3_settings.S3_TIMEOUT_SECONDS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown tasks."""

    logger.info("Initializing S3 client...")
    try:
        app.state.storage = create_s3_client_from_env()
        logger.info("S3 client ready")
    except Exception as e:
        logger.error(f"S3 client initialization failed: {e}", exc_info=True)
        logger.warning("Merge endpoints will answer 503 until storage is configured")
        app.state.storage = None

    app.state.ftp_client = FtpClient(
        timeout=ftp_settings.FTP_TIMEOUT_SECONDS,
        passive=ftp_settings.FTP_PASSIVE,
    )

    yield

    logger.info("Shutting down")
