"""Cloud Ops Pipeline - Main Application."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cloudops.api.routes import (
    accounts_router,
    automation_router,
    queue_router,
    recommendations_router,
)
from cloudops.core.config import get_settings
from cloudops.core.crypto import is_encryption_enabled
from cloudops.core.store import StoreError

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Automation rule enforcement, queued operation processing, "
                "recommendations and cloud account linking for a multi-cloud dashboard.",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(automation_router)
app.include_router(queue_router)
app.include_router(recommendations_router)
app.include_router(accounts_router)


@app.get("/health")
async def health_check():
    """Liveness probe."""
    return {"status": "healthy", "version": settings.app_version}


@app.get("/health/detailed")
async def detailed_health_check():
    """Readiness view: row store and encryption configuration."""
    current = get_settings()
    components = {
        "store": "configured" if current.is_store_configured else "not_configured",
        "encryption": "enabled" if is_encryption_enabled() else "disabled",
    }
    return {
        "status": "healthy" if current.is_store_configured else "degraded",
        "version": current.app_version,
        "environment": current.environment,
        "components": components,
    }


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors as ``{"error": message}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(StoreError)
async def store_exception_handler(request: Request, exc: StoreError):
    """Row store failures abort the invocation with the store's message."""
    logger.error(f"Row store failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": exc.message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Anything else becomes a 500 with the exception text."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": str(exc) or "Internal server error"},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "cloudops.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
