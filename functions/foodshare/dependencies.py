"""
Dependency wiring for the FastAPI app.

Backends are built once per application by `create_app` and kept on
`app.state`; the request-scoped dependencies below only look them up.
"""

from __future__ import annotations

import logging

from fastapi import Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from foodshare.auth import (
    FirebaseIdentityVerifier,
    IdentityVerifier,
    StaticIdentityVerifier,
    parse_service_account_key,
)
from foodshare.config import Settings
from foodshare.db import InMemoryListingStore, ListingStore, SqlListingStore
from foodshare.errors import Unauthenticated
from foodshare.listings import ListingService
from foodshare.types import Identity

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def build_listing_store(settings: Settings) -> ListingStore:
    if settings.use_in_memory_backends or not settings.database_url:
        logger.info("Using in-memory listing store")
        return InMemoryListingStore()
    return SqlListingStore(settings.database_url)


def build_identity_verifier(settings: Settings) -> IdentityVerifier:
    if settings.dev_identity_tokens:
        logger.warning("Using static development identity tokens")
        return StaticIdentityVerifier.from_mapping(settings.dev_identity_tokens)
    return FirebaseIdentityVerifier(
        service_account_info=parse_service_account_key(
            settings.firebase_service_account_key
        ),
        project_id=settings.firebase_project_id,
    )


def get_listing_service(request: Request) -> ListingService:
    return request.app.state.listing_service


def get_identity_verifier(request: Request) -> IdentityVerifier:
    return request.app.state.identity_verifier


def get_identity(
    request: Request,
    bearer: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> Identity:
    """Resolve the caller from the Authorization header or fail with 401."""
    if bearer is None or not bearer.credentials:
        raise Unauthenticated("Unauthorized: No token")
    return get_identity_verifier(request).verify(bearer.credentials)
