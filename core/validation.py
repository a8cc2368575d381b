"""Application startup validation checks.

Validates critical settings before the application starts serving requests.
"""

import logging

logger = logging.getLogger(__name__)


def validate_all_settings() -> None:
    """Validate all critical settings at application startup.

    Raises:
        RuntimeError: If any critical setting is missing or invalid
    """
    from core.settings import app_settings, ftp_settings, s3_settings

    critical_checks = [
        (s3_settings.S3_ENDPOINT, "S3_ENDPOINT", "S3/MinIO storage"),
        (s3_settings.S3_BUCKET, "S3_BUCKET", "S3/MinIO storage"),
        (s3_settings.S3_ACCESS_KEY, "S3_ACCESS_KEY", "S3/MinIO storage"),
        (
            s3_settings.S3_SECRET_KEY.get_secret_value(),
            "S3_SECRET_KEY",
            "S3/MinIO storage",
        ),
        (
            app_settings.MERGE_API_SECRET.get_secret_value(),
            "MERGE_API_SECRET",
            "Request authentication",
        ),
    ]

    missing = []
    for value, name, purpose in critical_checks:
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(f"  - {name} (required for {purpose})")

    if missing:
        error_msg = (
            "Missing critical environment variables:\n"
            + "\n".join(missing)
            + "\n\nPlease check your .env file or environment configuration."
        )
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    if "://" in s3_settings.S3_ENDPOINT:
        raise RuntimeError(
            f"S3_ENDPOINT must be host[:port] without a scheme, got {s3_settings.S3_ENDPOINT}"
        )

    if app_settings.MAX_BATCHES < 1:
        raise RuntimeError(f"MAX_BATCHES must be positive, got {app_settings.MAX_BATCHES}")

    for value, name in (
        (s3_settings.S3_TIMEOUT_SECONDS, "S3_TIMEOUT_SECONDS"),
        (ftp_settings.FTP_TIMEOUT_SECONDS, "FTP_TIMEOUT_SECONDS"),
    ):
        if value <= 0:
            raise RuntimeError(f"{name} must be positive, got {value}")

    logger.info("All critical settings validated successfully")
    logger.info(f"  - S3: {s3_settings.S3_ENDPOINT}/{s3_settings.S3_BUCKET}")
    logger.info(f"  - Max batches per request: {app_settings.MAX_BATCHES}")
