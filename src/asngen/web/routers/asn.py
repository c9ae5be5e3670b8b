from typing import Annotated, Any

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from asngen.core.modules.asn.models import ASNData
from asngen.web.deps import AppDep
from asngen.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["asn"])


class GenerateAsnRequest(BaseModel):
    """Request to generate a new ASN."""

    metadata: dict[str, Any] = Field(default_factory=dict, description="Additional metadata stored with the ASN")

    model_config = {"json_schema_extra": {"examples": [{"metadata": {"document": "Invoice 2024-117"}}]}}


class LookupResponse(BaseModel):
    """External lookup location of an ASN."""

    asn: str
    url: str


@router.post(
    "/asn",
    summary="Generate ASN",
    description=(
        "Generate a new ASN. Without `namespace`, a namespace from the generic range is chosen automatically. "
        "An explicit namespace must be managed, i.e. generic or configured as an additional managed namespace."
    ),
    operation_id="generateAsn",
    status_code=201,
    responses={
        201: {"description": "ASN generated"},
        400: {"model": ErrorResponse, "description": "Unregistered or invalid namespace"},
    },
)
async def generate_asn(
    request: Request,
    app: AppDep,
    body: GenerateAsnRequest | None = None,
    namespace: Annotated[int | None, Query(description="Managed namespace to generate the ASN in")] = None,
) -> ASNData:
    metadata = {**(body.metadata if body else {}), "client": "web", "path": request.url.path}
    return await app.generate_asn(metadata, namespace)


@router.get(
    "/asn/{asn}",
    summary="Get ASN",
    description="Get a previously generated ASN with the metadata stored when it was generated. The prefix is optional.",
    operation_id="getAsn",
    responses={
        200: {"description": "ASN details"},
        400: {"model": ErrorResponse, "description": "Invalid ASN"},
        404: {"model": ErrorResponse, "description": "ASN was never generated"},
    },
)
async def get_asn(asn: str, app: AppDep) -> ASNData:
    return await app.get_asn(asn)


@router.get(
    "/asn/{asn}/lookup",
    summary="Get lookup URL",
    description="Get the URL of the configured external system (e.g. a DMS) for this ASN.",
    operation_id="getAsnLookupUrl",
    responses={
        200: {"description": "Lookup URL"},
        400: {"model": ErrorResponse, "description": "Invalid ASN"},
        404: {"model": ErrorResponse, "description": "ASN lookup is disabled"},
    },
)
async def get_lookup_url(asn: str, app: AppDep) -> LookupResponse:
    return LookupResponse(asn=asn, url=app.get_lookup_url(asn))
