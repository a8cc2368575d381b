"""FastAPI dependency injection functions.

Collaborators are created once in the lifespan and stored on app.state;
routes receive them through these dependencies so tests can override them.
"""

from fastapi import HTTPException, Request, status

from services.processor import MergeProcessor
from services.s3_client import S3Client


async def get_storage(request: Request) -> S3Client:
    """Get the S3 client from app state.

    Raises:
        HTTPException: 503 if storage is unavailable
    """
    storage = getattr(request.app.state, "storage", None)

    if storage is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage unavailable",
        )

    return storage


async def get_merge_processor(request: Request) -> MergeProcessor:
    """Build a MergeProcessor over the shared storage and FTP clients.

    Raises:
        HTTPException: 503 if storage is unavailable
    """
    storage = await get_storage(request)
    ftp_client = getattr(request.app.state, "ftp_client", None)
    return MergeProcessor(storage, ftp_client)
