"""Main entry point for the Orion mint authorization service."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from orion_mint.api.v1 import (
    creators_router,
    mint_authorizations_router,
    system_router,
)
from orion_mint.core.errors import SignerNotConfigured
from orion_mint.core.log_config import configure_logging
from orion_mint.core.settings import settings
from orion_mint.db.session import create_tables, get_session_factory
from orion_mint.services.signing import get_signer
from orion_mint.services.similarity import close_similarity_client

configure_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Issues signed, single-use, time-bound mint authorizations",
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

# Include API routers
app.include_router(mint_authorizations_router, prefix="/api/v1")
app.include_router(creators_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Answer malformed requests with 400 and the common error body."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "errors": jsonable_encoder(exc.errors()),
            }
        },
    )


@app.on_event("startup")
async def on_startup() -> None:
    create_tables()
    try:
        get_signer()
    except SignerNotConfigured as exc:
        # Reads keep working; issuance answers 503 until a key is configured.
        logger.warning("%s", exc.message)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    close_similarity_client()


@app.get("/health")
def health_check(
    session_factory: Annotated[sessionmaker[Session], Depends(get_session_factory)],
) -> dict[str, str]:
    """Health check endpoint to verify the service and its store are reachable."""
    db_status = "ok"
    try:
        with session_factory() as session:
            session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Health check could not reach the store: %s", exc)
        db_status = "unavailable"
    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "service": settings.app_name,
        "db": db_status,
    }


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Issues signed, single-use, time-bound mint authorizations",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("orion_mint.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
