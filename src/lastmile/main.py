"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import analysis, clusters, health, lanes, rpc
from .config import Settings, settings as default_settings
from .data.shipments_repository import FileShipmentSource
from .errors import InvalidArgumentError, LaneAnalyticsError, NotFoundError, RecomputationError
from .services.lanes import LaneAnalyticsService

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (InvalidArgumentError, 422),
    (RecomputationError, 503),
)


async def _handle_engine_error(request: Request, exc: LaneAnalyticsError) -> JSONResponse:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            break
    else:
        status_code = 500
    if status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status_code, content=jsonable_encoder({"detail": exc.message, **exc.to_dict()}))


def create_app(service: Optional[LaneAnalyticsService] = None, config: Optional[Settings] = None) -> FastAPI:
    config = config or default_settings
    if service is None:
        source = FileShipmentSource(config.shipments_file, grace_days=config.late_grace_days)
        service = LaneAnalyticsService(source, config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.lane_service.close()

    app = FastAPI(title=config.app_name, root_path="", lifespan=lifespan)
    app.state.lane_service = service

    if config.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(config.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.add_exception_handler(LaneAnalyticsError, _handle_engine_error)

    # Root endpoint for diagnostics
    @app.get("/")
    def root():
        return {
            "service": config.app_name,
            "status": "running",
            "api_prefix": config.api_prefix,
            "health": f"{config.api_prefix}/health",
            "rpc": f"{config.api_prefix}/rpc",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=config.api_prefix)
    app.include_router(lanes.router, prefix=config.api_prefix)
    app.include_router(clusters.router, prefix=config.api_prefix)
    app.include_router(analysis.router, prefix=config.api_prefix)
    app.include_router(rpc.router, prefix=config.api_prefix)
    return app


app = create_app()
