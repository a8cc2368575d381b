"""Translation between API schemas and pipeline value objects."""

from api.schemas import (
    CleanupWarningSchema,
    MergeAndUploadRequest,
    MergeAndUploadResponse,
    MergeRequest,
    MergeResponse,
)
from pipeline.core.config import artifact_storage_path
from pipeline.models.dto import (
    CleanupWarning,
    DeliveryResult,
    FtpTarget,
    ObjectStorageTarget,
    Sidecar,
)


def build_storage_target(req: MergeRequest) -> ObjectStorageTarget:
    return ObjectStorageTarget(
        path=artifact_storage_path(req.order_id, req.format_tag),
        cleanup_sources=req.cleanup,
    )


def build_ftp_target(req: MergeAndUploadRequest) -> FtpTarget:
    sidecar = None
    if req.has_sidecar:
        sidecar = Sidecar(content=req.xml_content, filename=req.xml_filename)

    return FtpTarget(
        host=req.ftp.host,
        user=req.ftp.user,
        password=req.ftp.password.get_secret_value(),
        filename=req.pdf_filename,
        sidecar=sidecar,
        port=req.ftp.port,
        secure=req.ftp.secure,
    )


def _warnings(warnings: tuple[CleanupWarning, ...]) -> list[CleanupWarningSchema]:
    return [
        CleanupWarningSchema(paths=list(w.paths), message=w.message) for w in warnings
    ]


def build_merge_response(result: DeliveryResult) -> MergeResponse:
    return MergeResponse(
        storage_path=result.destination,
        size=result.size,
        pages=result.page_count,
        cleanup_warnings=_warnings(result.cleanup_warnings),
    )


def build_merge_and_upload_response(result: DeliveryResult) -> MergeAndUploadResponse:
    return MergeAndUploadResponse(
        size=result.size,
        pages=result.page_count,
        ftp_uploaded=True,
        pdf_filename=result.destination,
        xml_filename=result.sidecar_filename if result.sidecar_delivered else None,
        cleanup_warnings=_warnings(result.cleanup_warnings),
    )
