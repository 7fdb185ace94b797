"""Plan catalog endpoint."""

from fastapi import APIRouter

from subsync.models import PlansResponse
from subsync.plans import AVAILABLE_PLANS

router = APIRouter(tags=["plans"])


@router.get(
    "/plans",
    response_model=PlansResponse,
    summary="Available plans",
)
async def list_plans() -> PlansResponse:
    return PlansResponse(plans=list(AVAILABLE_PLANS))
