# =============================================================================
# Merge Configuration
# =============================================================================

PDF_CONTENT_TYPE = "application/pdf"

# Merged artifacts in object storage: temp/{order_id}/merged_{format}.pdf
ARTIFACT_PATH_TEMPLATE = "temp/{order_id}/merged_{format_tag}.pdf"


# =============================================================================
# Validation Limits
# =============================================================================

MAX_BATCHES = 500  # Maximum batch references per request
S3_PATH_MAX_LENGTH = 1024  # Maximum length for S3 object paths
IDENTIFIER_MAX_LENGTH = 128  # orderId / format tag
FILENAME_MAX_LENGTH = 255  # Remote FTP filenames
IDENTIFIER_PATTERN = r"^[A-Za-z0-9_\-]+$"


# =============================================================================
# External Service Defaults (seconds)
# =============================================================================

S3_TIMEOUT_SECONDS = 60
FTP_TIMEOUT_SECONDS = 60
FTP_DEFAULT_PORT = 21


def artifact_storage_path(order_id: str, format_tag: str) -> str:
    """Deterministic bucket path for a merged artifact.

    Re-running the same order and format overwrites the same object.
    """
    return ARTIFACT_PATH_TEMPLATE.format(order_id=order_id, format_tag=format_tag)
