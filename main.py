"""
Recipe Import API.

Run locally:
    uvicorn main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import structlog
from datetime import datetime, timezone

from config import settings, check_connection

API_VERSION = "0.1.0"

logging.basicConfig(format="%(message)s", level=settings.log_level)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup and check the storage backend once."""
    logger.info(
        "application_starting",
        environment=settings.environment,
        storage_backend=settings.storage_backend,
        template_id=settings.recipe_template_id
    )

    storage = check_connection()
    if storage["status"] == "healthy":
        logger.info("storage_ready", **storage)
    else:
        logger.error("storage_unavailable", backend=storage["backend"], error=storage.get("error"))

    yield

    logger.info("application_shutting_down")


app = FastAPI(
    title="Recipe Import",
    description="Bulk CSV/Excel recipe import with row-level error reporting",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Service status plus storage backend health."""
    storage = check_connection()
    return {
        "status": "healthy" if storage["status"] == "healthy" else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "storage": storage
    }


@app.get("/")
async def root():
    return {
        "name": "Recipe Import API",
        "version": API_VERSION,
        "docs": "/docs" if settings.debug else None,
        "endpoints": {
            "import": "/api/recipes/import",
            "import_logs": "/api/recipes/import/logs",
            "templates": "/api/templates"
        }
    }


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Last-resort 500 in the same shape as AppError.to_dict()."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }
    )


# Routers import services, which read settings; keep them after app setup
from routes.recipes import router as recipes_router
from routes.templates import router as templates_router

app.include_router(recipes_router, prefix="/api/recipes", tags=["Recipes"])
app.include_router(templates_router, prefix="/api/templates", tags=["Templates"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
