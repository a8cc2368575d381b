import logging

from pipeline.core.exceptions import FetchError
from pipeline.models.ports import ObjectStorage

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"NoSuchKey", "NoSuchObject", "NoSuchBucket", "ResourceNotFound"}
_PERMISSION_CODES = {
    "AccessDenied",
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
    "AllAccessDisabled",
}


def classify_storage_error(exc: BaseException) -> str:
    """Map a storage backend exception to a FetchError reason."""
    code = getattr(exc, "code", None)
    if code in _NOT_FOUND_CODES or isinstance(exc, FileNotFoundError):
        return "not_found"
    if code in _PERMISSION_CODES or isinstance(exc, PermissionError):
        return "permission"
    return "transport"


class ObjectFetcher:
    """Reads whole batch objects from storage into memory."""

    def __init__(self, storage: ObjectStorage):
        self.storage = storage

    def fetch(self, reference: str) -> bytes:
        try:
            data = self.storage.download(reference)
        except Exception as e:
            reason = classify_storage_error(e)
            logger.error(
                f"Failed to download {reference}: {e}",
                extra={"stage": "fetch", "error_code": reason},
            )
            raise FetchError(reference, reason=reason, cause=e) from e

        if not data:
            raise FetchError(reference, reason="not_found")

        logger.debug(f"Fetched {reference} ({len(data)} bytes)")
        return data
