"""FastAPI application entry point.

Run with: uvicorn main:app --host 0.0.0.0 --port 3000
"""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from pydantic_core import ValidationError as PydanticCoreValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.routes import health, merge
from core.error_handlers import (
    handle_app_error,
    handle_http_error,
    handle_pydantic_error,
    handle_unknown_error,
    handle_validation_error,
)
from core.lifespan import lifespan
from core.middleware import trace_id_middleware
from core.openapi import custom_openapi
from core.settings import app_settings, s3_settings
from core.validation import validate_all_settings
from pipeline.core.exceptions import BaseError
from pipeline.core.logging_config import configure_structured_logging

# Configure logging
configure_structured_logging(level=app_settings.LOG_LEVEL, json_format=app_settings.LOG_JSON)
logger = logging.getLogger(__name__)

# Validate environment before starting application
validate_all_settings()

import urllib3

if not s3_settings.S3_VERIFY_TLS:
    # Self-signed MinIO certificates in dev
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

# Initialize FastAPI app
app = FastAPI(
    title="PDF Merge Service",
    version=app_settings.SERVICE_VERSION,
    description="Merges stored PDF batches and delivers the result to storage or FTP",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Custom OpenAPI
app.openapi = lambda: custom_openapi(app)

# 1. Register Middleware
app.middleware("http")(trace_id_middleware)

# 2. Register Exception Handlers
app.add_exception_handler(RequestValidationError, handle_validation_error)
app.add_exception_handler(PydanticCoreValidationError, handle_pydantic_error)
app.add_exception_handler(StarletteHTTPException, handle_http_error)
app.add_exception_handler(BaseError, handle_app_error)
app.add_exception_handler(Exception, handle_unknown_error)

# Routes
app.include_router(health.router)
app.include_router(merge.router)
