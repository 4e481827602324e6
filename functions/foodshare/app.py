"""
FastAPI application entry point for the food sharing backend.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from foodshare.auth import IdentityVerifier
from foodshare.config import Settings, get_settings
from foodshare.db import ListingStore
from foodshare.dependencies import build_identity_verifier, build_listing_store
from foodshare.errors import ListingError
from foodshare.listings import ListingService
from foodshare.routes import router
from foodshare.schemas import HealthResponse

logger = logging.getLogger(__name__)

SERVICE_NAME = "Food Sharing Backend"


async def handle_listing_error(request: Request, exc: ListingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.info("Rejected request body for %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"message": "Invalid input"})


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[ListingStore] = None,
    verifier: Optional[IdentityVerifier] = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title=f"{SERVICE_NAME} (FastAPI)", version="0.1.0")
    app.state.listing_service = ListingService(
        store if store is not None else build_listing_store(settings),
        featured_limit=settings.featured_limit,
    )
    app.state.identity_verifier = (
        verifier if verifier is not None else build_identity_verifier(settings)
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Authorization"],
    )
    app.add_exception_handler(ListingError, handle_listing_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.get("/", response_model=HealthResponse)
    def health():
        return HealthResponse(status="ok", service=SERVICE_NAME)

    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
