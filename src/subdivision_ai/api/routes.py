from fastapi import APIRouter

from subdivision_ai.api.routers import errors_router, health_router, rate_limits_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(rate_limits_router)
router.include_router(errors_router)
