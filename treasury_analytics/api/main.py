"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from starlette.responses import Response

from treasury_analytics.api.middleware import MetricsMiddleware, RequestIDMiddleware
from treasury_analytics.api.v1 import analytics
from treasury_analytics.config import settings
from treasury_analytics.infrastructure.database.session import engine, get_session_factory
from treasury_analytics.infrastructure.observability.logging import setup_logging

setup_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Treasury analytics starting", extra={"service": settings.service_name})
    yield
    # Pooled connections are closed here, not per request
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Treasury Analytics",
        description="Cash flow, liquidity and category analytics for treasury clients",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Last added runs first: request id is set before metrics are taken
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    async def health_check(session_factory: async_sessionmaker = Depends(get_session_factory)):
        """Liveness plus a round trip to the transaction store"""
        try:
            async with session_factory() as session:
                await session.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"Health check failed: {e}")
            return JSONResponse(
                status_code=503,
                content={"status": "degraded", "service": settings.service_name, "database": "unavailable"},
            )
        return {"status": "ok", "service": settings.service_name, "database": "ok"}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(analytics.router, prefix="/v1", tags=["analytics"])

    return app


app = create_app()
