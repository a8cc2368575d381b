import logging
from typing import Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic_core import ValidationError as PydanticCoreValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.schemas import ProblemDetail
from core.utils import ensure_trace_id
from pipeline.core.exceptions import BaseError

logger = logging.getLogger(__name__)


def _problem_response(
    request: Request,
    trace_id: str,
    *,
    code: str,
    title: str,
    http_status: int,
    detail: Optional[str],
    category: str,
    retryable: bool = False,
    stage: Optional[str] = None,
) -> JSONResponse:
    problem = ProblemDetail(
        type=f"/errors/{code}",
        title=title,
        status=http_status,
        detail=detail,
        instance=request.url.path,
        code=code,
        category=category,
        retryable=retryable,
        stage=stage,
        trace_id=trace_id,
    )
    return JSONResponse(
        status_code=http_status,
        content=problem.model_dump(exclude_none=True),
        headers={"X-Trace-ID": trace_id},
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    """Handler for FastAPI/Pydantic request validation errors."""
    trace_id = ensure_trace_id(request)

    first_error = exc.errors()[0] if exc.errors() else {}
    loc = first_error.get("loc", [])
    field = ".".join(str(loc_part) for loc_part in loc if loc_part != "body")
    msg = first_error.get("msg", "Validation failed")
    detail = f"{field}: {msg}" if field else msg

    logger.warning(
        f"Validation error: {detail}",
        extra={"trace_id": trace_id, "http_status": 422},
    )

    return _problem_response(
        request,
        trace_id,
        code="VALIDATION_ERROR",
        title="Request validation failed",
        http_status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=detail,
        category="client_error",
    )


async def handle_pydantic_error(request: Request, exc: PydanticCoreValidationError):
    """Handler for Pydantic errors raised outside request parsing."""
    trace_id = ensure_trace_id(request)

    errors = exc.errors()
    first_error = errors[0] if errors else {}

    logger.warning(
        f"Pydantic validation failed: {errors}",
        extra={"trace_id": trace_id, "http_status": 422},
    )

    return _problem_response(
        request,
        trace_id,
        code="VALIDATION_ERROR",
        title="Request validation failed",
        http_status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=first_error.get("msg", "Validation failed"),
        category="client_error",
    )


async def handle_app_error(request: Request, exc: BaseError):
    """Handler for application errors: one response naming the failed stage."""
    trace_id = ensure_trace_id(request)
    stage = exc.details.get("stage")

    logger.error(
        f"Request failed at stage {stage or 'request'}: {exc.message}",
        extra={
            "trace_id": trace_id,
            "error_code": exc.error_code,
            "stage": stage,
            "http_status": exc.http_status,
        },
    )

    body = exc.to_dict()
    detail = body["detail"] or exc.message
    return _problem_response(
        request,
        trace_id,
        code=body["code"],
        title=body["title"],
        http_status=body["status"],
        detail=detail,
        category=body["category"],
        retryable=body["retryable"],
        stage=stage,
    )


async def handle_http_error(request: Request, exc: StarletteHTTPException):
    """Handler for standard HTTP exceptions (404, 401, 503...)."""
    trace_id = ensure_trace_id(request)

    logger.warning(
        f"HTTP exception: {exc.status_code} {exc.detail}",
        extra={"trace_id": trace_id, "http_status": exc.status_code},
    )

    return _problem_response(
        request,
        trace_id,
        code=f"HTTP_{exc.status_code}",
        title=str(exc.detail),
        http_status=exc.status_code,
        detail=str(exc.detail),
        category="server_error" if exc.status_code >= 500 else "client_error",
    )


async def handle_unknown_error(request: Request, exc: Exception):
    """Handler for unexpected 500 errors."""
    trace_id = ensure_trace_id(request)

    logger.exception(
        f"Unexpected error: {type(exc).__name__}",
        extra={"trace_id": trace_id, "http_status": 500},
    )

    return _problem_response(
        request,
        trace_id,
        code="INTERNAL_SERVER_ERROR",
        title="Internal server error",
        http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred. Please contact support with trace ID.",
        category="server_error",
    )
