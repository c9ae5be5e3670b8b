from typing import Annotated

from fastapi import APIRouter, Query

from asngen.core.modules.bump.models import BumpRecommendation
from asngen.core.modules.stats.models import TimeStats
from asngen.web.deps import AppDep
from asngen.web.openapi import ErrorResponse

router = APIRouter(tags=["stats"])


@router.get(
    "/stats",
    summary="Get registration statistics",
    description="Timing statistics between registrations for one managed namespace, or all of them.",
    operation_id="getStats",
    responses={
        200: {"description": "Statistics per namespace"},
        400: {"model": ErrorResponse, "description": "Unregistered namespace"},
    },
)
async def get_stats(
    app: AppDep,
    namespace: Annotated[int | None, Query(description="Managed namespace")] = None,
) -> list[TimeStats]:
    return await app.get_stats(namespace)


@router.get(
    "/stats/bump-recommendation",
    summary="Recommend bump delta",
    description=(
        "Suggest how far to bump counters after restoring a backup that is `hours` old. "
        "Assumes normally distributed registration gaps, so treat the result as a heuristic."
    ),
    operation_id="recommendBump",
    responses={
        200: {"description": "Recommended delta"},
        400: {"model": ErrorResponse, "description": "Unregistered namespace or negative hours"},
    },
)
async def recommend_bump(
    app: AppDep,
    hours: Annotated[float, Query(ge=0, description="Hours between the backup and now")],
    sigma: Annotated[float, Query(gt=0, description="Confidence in standard deviations")] = 3,
    namespace: Annotated[int | None, Query(description="Managed namespace")] = None,
) -> BumpRecommendation:
    return await app.recommend_bump(hours, sigma, namespace)
