"""Endpoints describing the configured namespaces and ASN format."""

from fastapi import APIRouter
from pydantic import BaseModel

from asngen.app import ManagedNamespaceView
from asngen.web.deps import AppDep

router = APIRouter(tags=["namespaces"])


class FormatResponse(BaseModel):
    prefix: str
    description: str


@router.get(
    "/namespaces",
    summary="List managed namespaces",
    description="Generic namespaces in ascending order, followed by the additional managed namespaces.",
    operation_id="listNamespaces",
)
async def list_namespaces(app: AppDep) -> list[ManagedNamespaceView]:
    return app.get_managed_namespaces()


@router.get(
    "/format",
    summary="Describe ASN format",
    description="Human-readable description of the configured ASN format.",
    operation_id="getFormat",
)
async def get_format(app: AppDep) -> FormatResponse:
    return FormatResponse(prefix=app.config.prefix, description=app.get_format_description())
