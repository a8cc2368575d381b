"""Custom exception hierarchy for the PDF merge service.

All exceptions inherit from BaseError and provide structured error information
compatible with RFC 7807 Problem Details for HTTP APIs. Pipeline failures carry
the stage that failed (fetch, parse, serialize, deliver) in their details so a
single problem response tells the caller where the run stopped.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Error categories for classification and monitoring."""

    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    EXTERNAL_SERVICE = "external_service"
    VALIDATION = "validation"


class BaseError(Exception):
    """Base exception for all merge service errors.

    Attributes:
        message: Human-readable error message
        error_code: Application-specific error code
        category: Error category for classification
        http_status: HTTP status code to return
        details: Additional context (dict)
        retryable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        category: ErrorCategory,
        http_status: int,
        details: Optional[dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.category = category
        self.http_status = http_status
        self.details = details or {}
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to RFC 7807 Problem Details format."""
        return {
            "type": f"/errors/{self.error_code}",
            "title": self.message,
            "status": self.http_status,
            "code": self.error_code,
            "detail": self.details.get("detail"),
            "category": self.category.value,
            "retryable": self.retryable,
        }


class ClientError(BaseError):
    """Base for client errors (4xx). Not retryable."""

    def __init__(self, message: str, error_code: str, **kwargs):
        super().__init__(
            message=message,
            error_code=error_code,
            category=ErrorCategory.CLIENT_ERROR,
            http_status=kwargs.pop("http_status", 400),
            retryable=False,
            **kwargs,
        )


class ValidationError(ClientError):
    """Input validation failed (422 Unprocessable Entity).

    Args:
        message: Validation error description
        field: Name of the field that failed validation
        details: Additional validation context
    """

    def __init__(self, message: str, field: str, **kwargs):
        additional_details = kwargs.pop("details", {})
        additional_details["field"] = field
        additional_details.setdefault("detail", message)
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            http_status=422,
            details=additional_details,
            **kwargs,
        )


class EmptyBatchListError(ValidationError):
    """A merge run was requested with no batch references.

    Raised before any storage call is made.
    """

    def __init__(self):
        super().__init__(
            message="At least one batch reference is required",
            field="storagePaths",
        )


class ServerError(BaseError):
    """Base for server errors (5xx)."""

    def __init__(self, message: str, error_code: str, **kwargs):
        super().__init__(
            message=message,
            error_code=error_code,
            category=kwargs.pop("category", ErrorCategory.SERVER_ERROR),
            http_status=kwargs.pop("http_status", 500),
            retryable=kwargs.pop("retryable", False),
            **kwargs,
        )


class ExternalServiceError(ServerError):
    """External service failure (502 Bad Gateway / 503 / 504 Gateway Timeout).

    Raised when a collaborator (S3, FTP) is unusable before a run starts.

    Args:
        service_name: Name of the external service
        error_type: Type of error ("timeout", "unavailable", "error")
        details: Additional error context
    """

    def __init__(self, service_name: str, error_type: str, **kwargs):
        if error_type == "timeout":
            http_status = 504
        elif error_type == "unavailable":
            http_status = 503
        else:
            http_status = 502

        additional_details = kwargs.pop("details", {})
        additional_details.update(
            {
                "service": service_name,
                "error_type": error_type,
            }
        )

        super().__init__(
            message=f"{service_name} service {error_type}",
            error_code=f"{service_name.upper()}_{error_type.upper()}",
            http_status=http_status,
            category=ErrorCategory.EXTERNAL_SERVICE,
            retryable=True,
            details=additional_details,
            **kwargs,
        )


def _describe(cause: Optional[BaseException]) -> Optional[str]:
    if cause is None:
        return None
    text = str(cause).strip()
    return f"{type(cause).__name__}: {text}" if text else type(cause).__name__


class FetchError(ServerError):
    """A batch could not be read from object storage.

    Fatal to the whole run; no partial artifact is produced.

    Args:
        reference: Object path of the batch
        reason: "not_found", "permission" or "transport"
        cause: Underlying backend exception
    """

    def __init__(
        self,
        reference: str,
        reason: str = "transport",
        cause: Optional[BaseException] = None,
    ):
        self.reference = reference
        self.reason = reason
        self.cause = cause
        super().__init__(
            message=f"Failed to download {reference}",
            error_code="BATCH_FETCH_FAILED",
            http_status=404 if reason == "not_found" else 502,
            category=ErrorCategory.EXTERNAL_SERVICE,
            retryable=reason == "transport",
            details={
                "stage": "fetch",
                "reference": reference,
                "reason": reason,
                "detail": _describe(cause),
            },
        )


class ParseError(BaseError):
    """A batch is not a readable PDF (422)."""

    def __init__(
        self,
        reference: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.reference = reference
        self.cause = cause
        target = reference or "document"
        super().__init__(
            message=f"Failed to parse {target}",
            error_code="BATCH_PARSE_FAILED",
            category=ErrorCategory.VALIDATION,
            http_status=422,
            details={
                "stage": "parse",
                "reference": reference,
                "detail": _describe(cause),
            },
        )


class SerializeError(ServerError):
    """The merged document could not be written out."""

    def __init__(self, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(
            message="Failed to serialize merged document",
            error_code="MERGE_SERIALIZE_FAILED",
            details={"stage": "serialize", "detail": _describe(cause)},
        )


class UploadKind(str, Enum):
    """Which file of a delivery failed."""

    PRIMARY = "primary"
    SIDECAR = "sidecar"


class UploadError(ServerError):
    """Writing to a delivery destination failed.

    Source batches are never cleaned up after this error.

    Args:
        target: "object_storage" or "ftp"
        destination: Path or remote filename being written
        kind: Whether the primary PDF or the sidecar failed
        phase: Optional sub-step ("connect", "transfer")
        cause: Underlying exception
    """

    def __init__(
        self,
        target: str,
        destination: str,
        kind: UploadKind = UploadKind.PRIMARY,
        phase: str = "transfer",
        cause: Optional[BaseException] = None,
    ):
        self.target = target
        self.destination = destination
        self.kind = kind
        self.phase = phase
        self.cause = cause
        label = "FTP" if target == "ftp" else "Storage"
        super().__init__(
            message=f"{label} upload failed: {destination}",
            error_code="UPLOAD_FAILED",
            http_status=502,
            category=ErrorCategory.EXTERNAL_SERVICE,
            retryable=True,
            details={
                "stage": "deliver",
                "target": target,
                "kind": kind.value,
                "phase": phase,
                "destination": destination,
                "detail": _describe(cause),
            },
        )
