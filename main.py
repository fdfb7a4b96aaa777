"""TaRL Admin - FastAPI Application."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.exceptions import AuditWriteFailed, CascadeConflict, EngineError, NotRestorable
from app.core.logging import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    """Map domain exceptions to JSON responses."""
    content: dict = {"detail": exc.message}
    if isinstance(exc, CascadeConflict):
        content["dependent_count"] = exc.dependent_count
    if isinstance(exc, NotRestorable):
        content["reason"] = exc.reason
    if isinstance(exc, AuditWriteFailed):
        logger.error("Audit write failed during %s %s", request.method, request.url.path)
    return JSONResponse(status_code=exc.status_code, content=content)


# Include API routes
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
