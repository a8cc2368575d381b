"""Shared-secret authentication for merge endpoints."""

import logging
import secrets

from fastapi import Header, HTTPException, Request, status

from core.settings import app_settings

logger = logging.getLogger(__name__)

API_SECRET_HEADER = "X-API-Secret"


async def require_api_secret(
    request: Request,
    x_api_secret: str | None = Header(default=None, alias=API_SECRET_HEADER),
) -> None:
    """Reject requests whose X-API-Secret header does not match MERGE_API_SECRET.

    Raises:
        HTTPException: 401 if the header is missing or wrong
    """
    expected = app_settings.MERGE_API_SECRET.get_secret_value()
    if (
        not expected
        or not x_api_secret
        or not secrets.compare_digest(x_api_secret.encode(), expected.encode())
    ):
        logger.warning(
            "Rejected unauthenticated request",
            extra={"trace_id": getattr(request.state, "trace_id", None)},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
