# src/buzzbyte_stage/main.py
"""Main entry point for the BuzzByte application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from buzzbyte_stage.api.v1 import auth_router, comments_router, posts_router, tags_router
from buzzbyte_stage.core.errors import DomainError
from buzzbyte_stage.core.logging import configure_logging
from buzzbyte_stage.core.settings import settings
from buzzbyte_stage.services.scheduler import SweepScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    scheduler: SweepScheduler | None = None
    if settings.sweeper_enabled:
        scheduler = SweepScheduler()
        await scheduler.start()
        logger.info(
            "Expiration sweeper scheduled every %.0fs",
            scheduler.interval,
        )
    app.state.sweep_scheduler = scheduler
    try:
        yield
    finally:
        if scheduler is not None:
            await scheduler.stop()


# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Ephemeral blogging API: every post expires 24 hours after creation",
    version=settings.app_version,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(tags_router, prefix="/api/v1")


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Translate service-layer errors into JSON responses."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report the first invalid field in the same shape as domain errors."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [part for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    content: dict[str, object] = {"detail": first.get("msg", "Validation failed")}
    if location:
        content["field"] = ".".join(str(part) for part in location)
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=content)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Ephemeral blogging API",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("buzzbyte_stage.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
