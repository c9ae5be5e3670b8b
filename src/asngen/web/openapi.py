from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        app.openapi_schema = get_openapi(
            title="ASN Generator API",
            version="0.1.0",
            summary="Unique, human-readable serial numbers (ASNs) for labelling physical documents",
            routes=app.routes,
        )
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Invalid ASN: ASN12", "type": "invalid_asn"},
                {"message": "ASN ASN123001 not found", "type": "not_found"},
                {"message": "Delta counter must be an integer >= 1, got 0", "type": "validation_error"},
            ]
        }
    }
