from __future__ import annotations

from fastapi import APIRouter, Depends

from subdivision_ai.api.deps import get_gateway
from subdivision_ai.api.schemas import BucketStatusModel, RateLimitStatusResponse
from subdivision_ai.resilience.gateway import ResilienceGateway

router = APIRouter(prefix="/rate-limits", tags=["rate-limits"])


@router.get("", response_model=RateLimitStatusResponse, summary="Rate limit status of every resource")
async def all_rate_limits(gateway: ResilienceGateway = Depends(get_gateway)) -> RateLimitStatusResponse:
    return {
        name: BucketStatusModel.from_status(status)
        for name, status in gateway.get_rate_limit_status().items()
    }


@router.get("/{resource}", response_model=BucketStatusModel, summary="Rate limit status of one resource")
async def rate_limit(resource: str, gateway: ResilienceGateway = Depends(get_gateway)) -> BucketStatusModel:
    return BucketStatusModel.from_status(gateway.registry.status(resource))


@router.post("/{resource}/reset", response_model=BucketStatusModel, summary="Refill a bucket to capacity")
async def reset_rate_limit(resource: str, gateway: ResilienceGateway = Depends(get_gateway)) -> BucketStatusModel:
    gateway.reset_rate_limits(resource)
    return BucketStatusModel.from_status(gateway.registry.status(resource))
