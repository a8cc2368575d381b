from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

from core.security import API_SECRET_HEADER


def custom_openapi(app: FastAPI):
    """OpenAPI schema with Problem Details errors and the API secret header."""
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )

    # Validation errors are answered as ProblemDetail, not HTTPValidationError
    for path in openapi_schema.get("paths", {}).values():
        for method in path.values():
            responses = method.get("responses", {})
            ref = (
                responses.get("422", {})
                .get("content", {})
                .get("application/json", {})
                .get("schema", {})
                .get("$ref", "")
            )
            if "HTTPValidationError" in ref:
                del responses["422"]

    components = openapi_schema.setdefault("components", {})
    schemas = components.get("schemas", {})
    schemas.pop("HTTPValidationError", None)
    schemas.pop("ValidationError", None)
    components.setdefault("securitySchemes", {})["ApiSecret"] = {
        "type": "apiKey",
        "in": "header",
        "name": API_SECRET_HEADER,
    }

    app.openapi_schema = openapi_schema
    return app.openapi_schema
