"""
Main FastAPI application.
"""

import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from floodguard.api.v1.api import api_router
from floodguard.core.config import settings
from floodguard.core.constants import API_DESCRIPTION
from floodguard.core.database import init_db
from floodguard.core.logging_config import setup_logging
from floodguard.core.middleware import ErrorHandlingMiddleware, LoggingMiddleware
from floodguard.core.monitoring import get_metrics

setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting FloodGuard API...")

    app.state.startup_complete = False

    try:
        # create_all is idempotent
        init_db()
        logger.info("Database initialized successfully")

        app.state.startup_complete = True
        logger.info("Application is now fully healthy and ready.")

    except Exception as error:
        logger.error(f"Failed to initialize database: {error}")
        raise

    yield

    logger.info("Shutting down FloodGuard API...")


app = FastAPI(
    root_path=os.getenv("ROOT_PATH", ""),
    title=settings.app_name,
    version=settings.version,
    description=API_DESCRIPTION,
    openapi_url=f"{settings.api_prefix}/openapi.json" if settings.debug else None,
    docs_url=f"{settings.api_prefix}/docs" if settings.debug else None,
    redoc_url=f"{settings.api_prefix}/redoc" if settings.debug else None,
    lifespan=lifespan,
)


@app.get("/health", tags=["General"])
async def health_check(response: Response):
    """
    ## Health Check

    Returns:
    - **200 OK**: Service is healthy.
    - **503 Service Unavailable**: Database initialization has not finished.
    """
    if not getattr(app.state, "startup_complete", False):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {
            "status": "initializing",
            "app_name": settings.app_name,
            "timestamp": time.time(),
        }

    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.version,
        "timestamp": time.time(),
    }


@app.get("/metrics", tags=["General"])
async def metrics():
    """Prometheus metrics in text exposition format."""
    return Response(content=get_metrics(), media_type="text/plain; version=0.0.4")


# Middleware Stack (Executed Top to Bottom)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(LoggingMiddleware)


@app.get("/docs", tags=["General"])
async def redirect_to_swagger():
    """Redirects to the Swagger UI documentation."""
    return RedirectResponse(url=f"{settings.api_prefix}/docs")


@app.get("/", tags=["General"])
async def root():
    """
    ## Welcome to FloodGuard API

    ### Available Endpoints:
    - **Latest**: `/api/v1/predictions/latest` - Most recent risk record
    - **History**: `/api/v1/predictions/history` - Newest-first records
    - **Stats**: `/api/v1/predictions/stats` - Risk distribution and model status
    - **Trigger**: `/api/v1/predictions/trigger` - Queue a prediction cycle
    """
    return {
        "message": "FloodGuard API",
        "version": settings.version,
        "status": "running",
        "endpoints": {
            "latest": f"{settings.api_prefix}/predictions/latest",
            "history": f"{settings.api_prefix}/predictions/history",
            "stats": f"{settings.api_prefix}/predictions/stats",
            "trigger": f"{settings.api_prefix}/predictions/trigger",
            "health": "/health",
            "metrics": "/metrics",
        },
    }


app.include_router(api_router, prefix=settings.api_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "floodguard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
