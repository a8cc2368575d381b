"""Merge endpoints: store the result, deliver it to FTP, or return it inline."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from api.mappers import (
    build_ftp_target,
    build_merge_and_upload_response,
    build_merge_response,
    build_storage_target,
)
from api.schemas import (
    MergeAndUploadRequest,
    MergeAndUploadResponse,
    MergeRequest,
    MergeResponse,
    ProblemDetail,
    RawMergeRequest,
)
from core.dependencies import get_merge_processor
from core.logging_utils import describe_paths, sanitize_order_id, sanitize_username
from core.security import require_api_secret
from pipeline.core.config import PDF_CONTENT_TYPE
from services.processor import MergeProcessor

router = APIRouter(dependencies=[Depends(require_api_secret)], tags=["merge"])
logger = logging.getLogger(__name__)

_ERROR_RESPONSES = {
    401: {"description": "Missing or wrong X-API-Secret", "model": ProblemDetail},
    404: {"description": "A batch does not exist", "model": ProblemDetail},
    422: {"description": "Invalid request or corrupt batch", "model": ProblemDetail},
    502: {"description": "Storage or FTP failure", "model": ProblemDetail},
}


@router.post("/merge", response_model=MergeResponse, responses=_ERROR_RESPONSES)
async def merge(
    request: Request,
    body: MergeRequest,
    processor: MergeProcessor = Depends(get_merge_processor),
):
    trace_id = getattr(request.state, "trace_id", None)
    logger.info(
        "[merge] orderId=%s, format=%s, batches=%d",
        sanitize_order_id(body.order_id),
        body.format_tag,
        len(body.storage_paths),
        extra={"trace_id": trace_id, "order_id": body.order_id},
    )

    result = await processor.merge_and_deliver(
        body.storage_paths, build_storage_target(body), trace_id=trace_id
    )

    logger.info(
        "[merge] Done: %s, %d bytes, %d pages",
        result.destination,
        result.size,
        result.page_count,
        extra={"trace_id": trace_id, "order_id": body.order_id},
    )
    return build_merge_response(result)


@router.post(
    "/merge-and-upload",
    response_model=MergeAndUploadResponse,
    responses=_ERROR_RESPONSES,
)
async def merge_and_upload(
    request: Request,
    body: MergeAndUploadRequest,
    processor: MergeProcessor = Depends(get_merge_processor),
):
    """Merge, upload the PDF to FTP and remove the source batches.

    The XML file is uploaded only when both xmlContent and xmlFilename are
    non-empty; otherwise it is skipped and xmlFilename is null in the response.
    """
    trace_id = getattr(request.state, "trace_id", None)
    logger.info(
        "[merge-and-upload] orderId=%s, format=%s, batches=%d, pdf=%s, ftp=%s@%s",
        sanitize_order_id(body.order_id),
        body.format_tag,
        len(body.storage_paths),
        body.pdf_filename,
        sanitize_username(body.ftp.user),
        body.ftp.host,
        extra={"trace_id": trace_id, "order_id": body.order_id},
    )

    result = await processor.merge_and_deliver(
        body.storage_paths, build_ftp_target(body), trace_id=trace_id
    )

    if result.cleanup_warnings:
        logger.warning(
            "[merge-and-upload] Cleanup incomplete for %s",
            describe_paths(body.storage_paths),
            extra={"trace_id": trace_id, "order_id": body.order_id},
        )
    return build_merge_and_upload_response(result)


@router.post(
    "/merge/raw",
    response_class=Response,
    responses={
        200: {"content": {PDF_CONTENT_TYPE: {}}, "description": "Merged PDF"},
        **_ERROR_RESPONSES,
    },
)
async def merge_raw(
    request: Request,
    body: RawMergeRequest,
    processor: MergeProcessor = Depends(get_merge_processor),
):
    trace_id = getattr(request.state, "trace_id", None)
    logger.info(
        "[merge/raw] batches=%d",
        len(body.storage_paths),
        extra={"trace_id": trace_id},
    )

    artifact = await processor.merge_only(body.storage_paths, trace_id=trace_id)
    return Response(
        content=artifact.data,
        media_type=PDF_CONTENT_TYPE,
        headers={"X-Page-Count": str(artifact.page_count)},
    )
