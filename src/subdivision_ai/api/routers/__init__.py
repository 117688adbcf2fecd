from subdivision_ai.api.routers.errors import router as errors_router
from subdivision_ai.api.routers.health import router as health_router
from subdivision_ai.api.routers.rate_limits import router as rate_limits_router

__all__ = [
    "health_router",
    "rate_limits_router",
    "errors_router",
]
