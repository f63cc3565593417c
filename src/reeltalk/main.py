# src/reeltalk/main.py
"""Main entry point for the ReelTalk discussion service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from reeltalk.api.v1 import bookmarks_router, posts_router, reactions_router, replies_router
from reeltalk.core.errors import ForumError, StorageFailure
from reeltalk.core.logging import configure_logging
from reeltalk.core.settings import settings
from reeltalk.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

configure_logging()

# Initialize FastAPI app
app = FastAPI(
    title="ReelTalk API",
    description="Threaded discussions for movies and TV",
    version=settings.app_version,
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

# Every service error is rendered as {"detail": ...}
ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409, 503)
}

# Include API routers
for router in (posts_router, replies_router, reactions_router, bookmarks_router):
    app.include_router(router, prefix="/api/v1", responses=ERROR_RESPONSES)


@app.exception_handler(ForumError)
async def forum_error_handler(request: Request, exc: ForumError) -> JSONResponse:
    """Translate service errors into HTTP responses."""
    if isinstance(exc, StorageFailure):
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.__cause__ or exc)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "ReelTalk API",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("reeltalk.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
