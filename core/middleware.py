"""Request tracing middleware."""

import logging
import time

from fastapi import Request

from core.utils import TRACE_ID_HEADER, ensure_trace_id

logger = logging.getLogger(__name__)


async def trace_id_middleware(request: Request, call_next):
    """Ensure every request has a trace ID in state and response headers."""
    trace_id = ensure_trace_id(request)
    start_time = time.perf_counter()
    response = await call_next(request)
    response.headers[TRACE_ID_HEADER] = trace_id
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code}",
        extra={
            "trace_id": trace_id,
            "http_status": response.status_code,
            "duration_ms": round((time.perf_counter() - start_time) * 1000),
        },
    )
    return response
