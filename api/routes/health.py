import asyncio

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.schemas import HealthResponse, ServiceInfoResponse
from core.dependencies import get_storage
from core.settings import app_settings
from services.s3_client import S3Client

router = APIRouter()


@router.get("/", response_model=ServiceInfoResponse, tags=["health"])
async def service_info():
    return {
        "status": "ok",
        "service": app_settings.SERVICE_NAME,
        "version": app_settings.SERVICE_VERSION,
    }


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(storage: S3Client = Depends(get_storage)):
    loop = asyncio.get_event_loop()
    storage_health = await loop.run_in_executor(None, storage.health_check)
    status_code = 200 if storage_health["healthy"] else 503

    return JSONResponse(
        status_code=status_code,
        content={
            "status": "healthy" if storage_health["healthy"] else "unhealthy",
            "service": app_settings.SERVICE_NAME,
            "version": app_settings.SERVICE_VERSION,
            "storage": {
                "status": "connected" if storage_health["healthy"] else "disconnected",
                "bucket": storage.bucket,
                "error": storage_health.get("error"),
            },
        },
    )
