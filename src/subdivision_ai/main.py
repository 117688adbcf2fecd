from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from subdivision_ai.api.deps import get_gateway, get_telemetry
from subdivision_ai.api.exception_handlers import register_exception_handlers
from subdivision_ai.api.middleware import setup_middlewares
from subdivision_ai.api.routes import router
from subdivision_ai.config import get_settings

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ARG001
    # Build the gateway up front so bad rate-limit settings fail at startup.
    gateway = get_gateway()
    logging.info(
        "startup",
        extra={"event": "startup", "resources": gateway.registry.names()},
    )
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="subdivision-ai",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.telemetry = get_telemetry()
    setup_middlewares(app)
    register_exception_handlers(app)
    app.include_router(router)
    return app


app = create_app()
