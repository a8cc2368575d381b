"""Pydantic request/response schemas for API endpoints.

Request and response bodies use camelCase keys (``storagePaths``,
``pdfFilename``...) so existing callers keep working; Python code uses the
snake_case field names.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator

from api.validators import (
    validate_identifier,
    validate_remote_filename,
    validate_storage_path,
)
from core.settings import app_settings
from pipeline.core.config import FTP_DEFAULT_PORT


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    See: https://www.rfc-editor.org/rfc/rfc7807
    """

    type: str = Field(..., description="URI reference identifying the problem type")
    title: str = Field(..., description="Short, human-readable summary of the problem")
    status: int = Field(..., description="HTTP status code for this problem")
    detail: Optional[str] = Field(
        None, description="Human-readable explanation specific to this occurrence"
    )
    instance: Optional[str] = Field(
        None, description="Request path that produced the problem"
    )

    # Extension members (allowed by RFC 7807)
    code: str = Field(..., description="Application-specific error code")
    category: str = Field(
        ..., description="Error category (client_error, server_error, etc.)"
    )
    retryable: bool = Field(
        default=False, description="Whether the request can be retried"
    )
    stage: Optional[str] = Field(
        None, description="Pipeline stage that failed (fetch, parse, serialize, deliver)"
    )
    trace_id: Optional[str] = Field(
        None, description="Distributed tracing ID for correlation across services"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "/errors/BATCH_FETCH_FAILED",
                "title": "Failed to download batches/42/batch_3.pdf",
                "status": 404,
                "detail": "S3Error: NoSuchKey",
                "instance": "/merge",
                "code": "BATCH_FETCH_FAILED",
                "category": "external_service",
                "retryable": False,
                "stage": "fetch",
                "trace_id": "a1b2c3d4-e5f6-7890-abcd-ef1234567890",
            }
        }
    )


class _BatchRequest(BaseModel):
    storage_paths: List[str] = Field(
        ...,
        alias="storagePaths",
        min_length=1,
        description="Ordered batch object paths; order determines page order",
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("storage_paths")
    @classmethod
    def validate_storage_paths(cls, paths: List[str]) -> List[str]:
        if len(paths) > app_settings.MAX_BATCHES:
            raise ValueError(
                f"At most {app_settings.MAX_BATCHES} batches can be merged per request"
            )
        return [validate_storage_path(path) for path in paths]


class RawMergeRequest(_BatchRequest):
    """Merge only; the PDF is returned in the response body."""


class MergeRequest(_BatchRequest):
    """Merge and store the result at temp/{orderId}/merged_{format}.pdf."""

    order_id: str = Field(..., alias="orderId", min_length=1)
    format_tag: str = Field(..., alias="format", min_length=1)
    cleanup: bool = Field(
        default=False, description="Remove source batches after a successful upload"
    )

    @field_validator("order_id")
    @classmethod
    def validate_order_id(cls, value: str) -> str:
        return validate_identifier(value, "orderId")

    @field_validator("format_tag")
    @classmethod
    def validate_format(cls, value: str) -> str:
        return validate_identifier(value, "format")


class FtpConfig(BaseModel):
    host: str = Field(..., min_length=1, max_length=255)
    user: str = Field(..., min_length=1)
    password: SecretStr
    port: int = Field(default=FTP_DEFAULT_PORT, ge=1, le=65535)
    secure: bool = Field(default=False, description="Use explicit FTPS")

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("password is required")
        return value

    @field_validator("host")
    @classmethod
    def validate_host(cls, value: str) -> str:
        value = value.strip()
        if not value or any(ch.isspace() for ch in value) or "/" in value:
            raise ValueError("host must be a bare hostname or IP address")
        return value


class MergeAndUploadRequest(_BatchRequest):
    """Merge and deliver to FTP, with an optional XML sidecar."""

    order_id: Optional[str] = Field(default=None, alias="orderId")
    format_tag: Optional[str] = Field(default=None, alias="format")
    ftp: FtpConfig
    pdf_filename: str = Field(..., alias="pdfFilename")
    xml_content: Optional[str] = Field(default=None, alias="xmlContent")
    xml_filename: Optional[str] = Field(default=None, alias="xmlFilename")

    @field_validator("pdf_filename")
    @classmethod
    def validate_pdf_filename(cls, value: str) -> str:
        return validate_remote_filename(value)

    @field_validator("xml_filename")
    @classmethod
    def validate_xml_filename(cls, value: Optional[str]) -> Optional[str]:
        return validate_remote_filename(value) if value else None

    @property
    def has_sidecar(self) -> bool:
        """The XML is sent only when both content and filename are non-empty."""
        return bool(self.xml_content) and bool(self.xml_filename)

    @model_validator(mode="after")
    def validate_sidecar_name(self) -> "MergeAndUploadRequest":
        if self.has_sidecar and self.xml_filename == self.pdf_filename:
            raise ValueError("xmlFilename must differ from pdfFilename")
        return self


class CleanupWarningSchema(BaseModel):
    paths: List[str]
    message: str


class MergeResponse(BaseModel):
    storage_path: str = Field(..., alias="storagePath")
    size: int = Field(..., description="Merged PDF size in bytes")
    pages: int
    cleanup_warnings: List[CleanupWarningSchema] = Field(
        default_factory=list, alias="cleanupWarnings"
    )

    model_config = ConfigDict(populate_by_name=True)


class MergeAndUploadResponse(BaseModel):
    size: int
    pages: int
    ftp_uploaded: bool = Field(..., alias="ftpUploaded")
    pdf_filename: str = Field(..., alias="pdfFilename")
    xml_filename: Optional[str] = Field(None, alias="xmlFilename")
    cleanup_warnings: List[CleanupWarningSchema] = Field(
        default_factory=list, alias="cleanupWarnings"
    )

    model_config = ConfigDict(populate_by_name=True)


class ServiceInfoResponse(BaseModel):
    status: str
    service: str
    version: str


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    storage: dict
