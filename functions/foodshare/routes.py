"""
HTTP routes for the listing API.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from foodshare.db import ListingRecord
from foodshare.dependencies import get_identity, get_listing_service
from foodshare.listings import ListingService
from foodshare.schemas import (
    ClaimPayload,
    CreateListingResponse,
    DeleteListingResponse,
    IdentityResponse,
    ListingPayload,
    ListingResponse,
    VerifyTokenResponse,
)
from foodshare.types import Identity

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(record: ListingRecord) -> ListingResponse:
    return ListingResponse(**record.as_dict())


@router.get("/verify-token", response_model=VerifyTokenResponse)
def verify_token(identity: Identity = Depends(get_identity)):
    return VerifyTokenResponse(
        message="Token is valid", user=IdentityResponse(**identity.as_dict())
    )


@router.post("/listings", response_model=CreateListingResponse, status_code=201)
def create_listing(
    payload: ListingPayload,
    identity: Identity = Depends(get_identity),
    service: ListingService = Depends(get_listing_service),
):
    record = service.create(payload.listing_fields(), identity)
    return CreateListingResponse(id=record.id)


@router.get("/listings", response_model=list[ListingResponse])
def list_listings(service: ListingService = Depends(get_listing_service)):
    return [_to_response(record) for record in service.list_all()]


@router.get("/listings/featured", response_model=list[ListingResponse])
def list_featured_listings(service: ListingService = Depends(get_listing_service)):
    return [_to_response(record) for record in service.list_featured()]


@router.get("/listings/available", response_model=list[ListingResponse])
def list_available_listings(service: ListingService = Depends(get_listing_service)):
    return [_to_response(record) for record in service.list_available()]


@router.get("/listings/mine", response_model=list[ListingResponse])
def list_my_listings(
    identity: Identity = Depends(get_identity),
    service: ListingService = Depends(get_listing_service),
):
    return [_to_response(record) for record in service.list_by_owner(identity)]


@router.get("/listings/requested", response_model=list[ListingResponse])
def list_requested_listings(
    identity: Identity = Depends(get_identity),
    service: ListingService = Depends(get_listing_service),
):
    return [_to_response(record) for record in service.list_requested_by(identity)]


@router.get("/listings/{listing_id}", response_model=ListingResponse)
def get_listing(
    listing_id: str, service: ListingService = Depends(get_listing_service)
):
    return _to_response(service.get(listing_id))


@router.put("/listings/{listing_id}", response_model=ListingResponse)
def update_listing(
    listing_id: str,
    payload: ListingPayload,
    identity: Identity = Depends(get_identity),
    service: ListingService = Depends(get_listing_service),
):
    record = service.update(listing_id, payload.listing_fields(), identity)
    return _to_response(record)


@router.patch("/listings/{listing_id}", response_model=ListingResponse)
def request_listing(
    listing_id: str,
    payload: Optional[ClaimPayload] = None,
    identity: Identity = Depends(get_identity),
    service: ListingService = Depends(get_listing_service),
):
    """
    Claim a listing. Only one requester can win; the rest get 409.
    """
    payload = payload or ClaimPayload()
    record = service.request(
        listing_id,
        identity,
        request_date=payload.request_date,
        notes=payload.notes,
    )
    return _to_response(record)


@router.delete("/listings/{listing_id}", response_model=DeleteListingResponse)
def delete_listing(
    listing_id: str,
    identity: Identity = Depends(get_identity),
    service: ListingService = Depends(get_listing_service),
):
    service.delete(listing_id, identity)
    return DeleteListingResponse(id=listing_id)
